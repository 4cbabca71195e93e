"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from authserver.core.config import BaseConfig, ProductionConfig, get_config, validate_config
from authserver.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    config_obj = get_config() if config is None else config
    app.config.from_object(config_obj)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    is_production = isinstance(config_obj, type) and issubclass(config_obj, ProductionConfig)
    validate_config(app.config, production=is_production)

    from authserver.core import middleware

    middleware.init_app(app)

    from authserver.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from authserver import bootstrap

    bootstrap.init_app(app)

    from authserver.api import init_app as init_api

    init_api(app)

    from authserver.core import errors

    errors.init_app(app)

    from authserver import cli as app_cli

    app_cli.init_app(app)

    return app
