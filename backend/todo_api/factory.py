"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from todo_api.core.config import DEFAULT_JWT_SECRET, BaseConfig, get_config
from todo_api.core.logger import configure_logging, init_app as init_logging


def _check_secrets(app: Flask) -> None:
    """Refuse to boot a hardened environment with placeholder signing keys."""

    if not app.config.get("REQUIRE_STRONG_SECRETS"):
        return
    jwt_key = app.config.get("JWT_SECRET_KEY") or ""
    if jwt_key == DEFAULT_JWT_SECRET or len(jwt_key) < 32:
        raise RuntimeError("JWT_SECRET_KEY must be set to a random value of at least 32 chars.")
    if app.config.get("SECRET_KEY") in (None, "", "CHANGE_ME"):
        raise RuntimeError("SECRET_KEY must be set in this environment.")


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    The signing key and token lifetimes are read once here and stay fixed for
    the life of the process; rotating the key means redeploying.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    _check_secrets(app)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from todo_api.core import proxy

    proxy.init_app(app)

    from todo_api.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from todo_api.core import cors

    cors.init_app(app)

    from todo_api.api import init_app as init_api

    init_api(app)

    from todo_api.core import errors

    errors.init_app(app)

    from todo_api import cli as app_cli

    app_cli.init_app(app)

    return app
