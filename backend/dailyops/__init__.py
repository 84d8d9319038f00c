# backend/dailyops/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate
from .logging_setup import configure_logging



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    # Overrides must land before extensions bind their engines
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.inventory import inventory_bp
    from .routes.worker_inventory import worker_inventory_bp
    from .routes.deliveries import deliveries_bp
    from .routes.cash import cash_bp
    from .routes.verification import verification_bp
    from .routes.bills import bills_bp
    from .routes.relations import relations_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(worker_inventory_bp)
    app.register_blueprint(deliveries_bp)
    app.register_blueprint(cash_bp)
    app.register_blueprint(verification_bp)
    app.register_blueprint(bills_bp)
    app.register_blueprint(relations_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
