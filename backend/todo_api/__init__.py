"""Todo API backend.

Exposes :func:`todo_api.factory.create_app` at package level so WSGI servers
can point at ``todo_api:create_app()``.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
