# backend/bakehouse/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)

    # Overrides must land before extensions bind their engines
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.batches import batches_bp
    from .routes.sales import sales_bp
    from .routes.remaining_stock import remaining_stock_bp
    from .routes.inventory import inventory_bp
    from .routes.shift_feedback import shift_feedback_bp
    from .routes.dashboard import dashboard_bp
    from .routes.shift_reports import shift_reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(batches_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(remaining_stock_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(shift_feedback_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(shift_reports_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
