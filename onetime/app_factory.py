"""
Application Factory

Creates and configures the Flask application with all dependencies.
Configuration is read from the environment once, here, and passed
explicitly to every component. Tests inject their own config, storage
and clock.
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from onetime.application.onetime_service import OnetimeService
from onetime.config.logging_config import setup_logging
from onetime.config.settings import OnetimeConfig
from onetime.domain.clock import Clock, SystemClock
from onetime.domain.storage import OnetimeStorage
from onetime.infrastructure.invalid_storage import InvalidStorage
from onetime.infrastructure.storage_factory import StorageFactory

logger = logging.getLogger(__name__)

# Room for multipart boundaries and part headers around an upload
MULTIPART_OVERHEAD = 16 * 1024


def create_app(
    config: Optional[OnetimeConfig] = None,
    storage: Optional[OnetimeStorage] = None,
    clock: Optional[Clock] = None,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, read from the environment if None
        storage: Storage backend, built by StorageFactory if None
        clock: Timestamp source, SystemClock if None

    Returns:
        Configured Flask application
    """
    if config is None:
        config = OnetimeConfig.from_env()

    setup_logging("onetime", config.log_level)
    logger.info(f"Starting onetime downloader: {config.describe()}")

    app = Flask(__name__)
    # /api/files and /api/files/ are the same resource
    app.url_map.strict_slashes = False
    # Oversized bodies are refused with 413 before the form is parsed
    app.config["MAX_CONTENT_LENGTH"] = (
        config.max_len_file + config.max_len_value + MULTIPART_OVERHEAD
    )

    CORS(
        app,
        resources={
            r"/api/*": {
                "origins": "*",
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type", "X-Api-Key"],
                "max_age": 3600,
            },
            r"/download/*": {"origins": "*", "methods": ["GET", "OPTIONS"]},
        },
    )

    _initialize_services(app, config, storage, clock)
    _register_blueprints(app)
    _register_health_endpoint(app)

    return app


def _initialize_services(
    app: Flask,
    config: OnetimeConfig,
    storage: Optional[OnetimeStorage],
    clock: Optional[Clock],
) -> None:
    """
    Build the storage backend and service and attach them to the app.

    Exactly one backend is created per process; it is never swapped.
    """
    if storage is None:
        storage = StorageFactory.create_storage(config)
    if clock is None:
        clock = SystemClock()

    app.onetime_config = config
    app.storage = storage
    app.onetime_service = OnetimeService(storage, clock)

    if isinstance(storage, InvalidStorage):
        logger.error(f"Running without usable storage: {storage.error}")
    else:
        logger.info(f"Application services initialized with storage '{storage.name}'")


def _register_blueprints(app: Flask) -> None:
    """Register the API blueprint."""
    from onetime.api import api_bp

    app.register_blueprint(api_bp)

    logger.info("API registered at /api with Swagger UI at /api/docs")


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Report whether the process has a usable storage backend.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    storage = app.storage
    health_status = {
        "status": "degraded" if isinstance(storage, InvalidStorage) else "ok",
        "storage": storage.name,
    }
    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    @app.route("/health", methods=["GET"])
    def health():
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
