import logging
from typing import Any, Mapping, Optional, Tuple

from flask import Flask, jsonify
from werkzeug.wrappers.response import Response

from praktijk.cli_encryption import register_encryption_commands
from praktijk.config import ConfigParseError, EncryptionSettings, load_config
from praktijk.crypto import SaltNotFoundError
from praktijk.db import db, migrate
from praktijk.version import __version__

__all__ = ["__version__", "create_app"]


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)

    if app.config["DEBUG"] or app.config["TESTING"]:
        app.logger.setLevel(logging.DEBUG)
    else:
        logging.basicConfig(format="%(levelname)s:%(message)s")

    if not config:
        config = load_config()

    app.config.from_mapping(config)
    settings = app.config.get("ENCRYPTION")
    if not isinstance(settings, EncryptionSettings):
        raise ConfigParseError("Missing ENCRYPTION settings, build the config with load_config()")

    db.init_app(app)
    migrate.init_app(app, db)

    if settings.uses_dev_secret:
        app.logger.warning("Field encryption is using the development server secret")

    register_error_handlers(app)

    # Register custom CLI commands
    register_encryption_commands(app)

    return app


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(SaltNotFoundError)
    def handle_salt_not_found(e: SaltNotFoundError) -> Tuple[Response, int]:
        # without a salt there is no key, never fall back to serving the record
        app.logger.error(f"Refusing request: {e}")
        return jsonify(success=False, error="Internal Server Error"), 500
