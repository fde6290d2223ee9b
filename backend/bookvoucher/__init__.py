# backend/bookvoucher/__init__.py
from __future__ import annotations

from collections.abc import Mapping

from flask import Flask, request

from .config import Config
from .extensions import db


def create_app(test_config: Mapping | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)

    # Import models so create_all sees the full metadata
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.outlets import outlets_bp
    from .routes.catalogue import catalogue_bp
    from .routes.redemptions import redemptions_bp
    from .routes.stock import stock_bp
    from .routes.day_end import day_end_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(outlets_bp)
    app.register_blueprint(catalogue_bp)
    app.register_blueprint(redemptions_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(day_end_bp)
    app.register_blueprint(reports_bp)

    allowed_origins = set(app.config["CORS_ALLOWED_ORIGINS"])

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
