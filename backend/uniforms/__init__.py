# backend/uniforms/__init__.py
from flask import Flask, jsonify, request

from .config import Config
from .extensions import db, migrate
from .errors import NotFoundError


def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.requests import requests_bp
    from .routes.staff import staff_bp
    from .routes.uniform_items import uniform_items_bp
    from .routes.settings import settings_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(requests_bp)
    app.register_blueprint(staff_bp)
    app.register_blueprint(uniform_items_bp)
    app.register_blueprint(settings_bp)

    @app.errorhandler(404)
    def route_not_found(_exc):
        error = NotFoundError(f"Route not found: {request.method} {request.path}")
        return jsonify(error.to_dict()), 404

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", set()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
