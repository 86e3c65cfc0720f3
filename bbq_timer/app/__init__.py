"""BBQ timer control surface: Flask application factory."""

import os

from flask import Flask

EXTENSION_KEY = "bbq_timer"


def create_app(orchestrator, config=None):
    """Create and configure the Flask application around a running orchestrator."""
    app = Flask(__name__)

    # Default configuration
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-key-change-in-production")

    # Override with custom config if provided
    if config:
        app.config.update(config)

    # Services shared by every request
    app.extensions[EXTENSION_KEY] = orchestrator

    # Register blueprints
    from .routes import main_bp
    app.register_blueprint(main_bp)

    return app
