"""API blueprint package bundling the routes mounted under the API prefix."""

from __future__ import annotations

from flask import Blueprint

# Import blueprints *only here* to keep imports localized and avoid cycles.
from .auth import bp as auth_bp  # noqa: E402
from .health import bp as health_bp  # noqa: E402
from .todos import bp as todos_bp  # noqa: E402

# Each tuple: (blueprint, url_prefix_relative_to_api_base)
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),  # -> /api/health
    (auth_bp, ""),  # -> /api/register, /api/login, ...
    (todos_bp, "/todos"),  # -> /api/todos
]
