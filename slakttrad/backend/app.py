"""Main Quart application for the Släktträd backend."""

import logging
from typing import Any

from pydantic import ValidationError
from quart import Quart, jsonify
from quart_cors import cors
from werkzeug.exceptions import HTTPException

from slakttrad import __version__
from slakttrad.backend.api.auth import auth_bp
from slakttrad.backend.api.export import export_bp
from slakttrad.backend.api.people import people_bp
from slakttrad.backend.api.relations import relations_bp
from slakttrad.backend.api.trees import trees_bp
from slakttrad.backend.config import get_config
from slakttrad.errors import SlakttradError
from slakttrad.schemas import first_error_message
from slakttrad.storage.sqlite import FamilyTreeDatabase

logger = logging.getLogger(__name__)


def create_app(
    config_name: str = "development", config_overrides: dict[str, Any] | None = None
) -> Quart:
    """Create and configure the Quart application.

    Args:
        config_name: Configuration environment name
        config_overrides: Optional config values applied on top (used by tests)

    Returns:
        Configured Quart app

    Raises:
        ValueError: If no JWT signing secret is configured
    """
    app = Quart(__name__)

    # Load configuration
    config = get_config(config_name)
    app.config.from_object(config)
    if config_overrides:
        app.config.update(config_overrides)

    if not app.config.get("JWT_ACCESS_SECRET"):
        raise ValueError(
            "JWT_ACCESS_SECRET saknas i env. Copy .env.example to .env and set a secret."
        )

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app.extensions["family_db"] = FamilyTreeDatabase(database_url=app.config["DATABASE_URL"])

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(trees_bp)
    app.register_blueprint(people_bp)
    app.register_blueprint(relations_bp)
    app.register_blueprint(export_bp)

    # Register routes
    register_routes(app)
    register_error_handlers(app)

    app = cors(
        app,
        allow_origin=app.config["CORS_ORIGINS"],
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )
    return app


def register_routes(app: Quart) -> None:
    """Register API routes.

    Args:
        app: Quart application
    """

    @app.route("/health", methods=["GET"])
    async def health_check():
        """Health check endpoint; pings the database."""
        try:
            app.extensions["family_db"].ping()
        except Exception as e:
            logger.exception("Database ping failed")
            return jsonify({"ok": False, "error": f"DB fel: {e!s}"}), 500
        return jsonify({"ok": True, "service": "slakttrad-backend", "version": __version__})


def register_error_handlers(app: Quart) -> None:
    """Translate exceptions into JSON error responses.

    Args:
        app: Quart application
    """

    @app.errorhandler(SlakttradError)
    async def handle_app_error(error: SlakttradError):
        return jsonify({"error": error.message}), error.status_code

    @app.errorhandler(ValidationError)
    async def handle_validation_error(error: ValidationError):
        return jsonify({"error": first_error_message(error)}), 400

    @app.errorhandler(HTTPException)
    async def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    async def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return await handle_http_error(error)
        logger.exception("Unhandled error")
        return jsonify({"error": "Ett oväntat fel inträffade."}), 500


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=4000, debug=True)
