from __future__ import annotations

import atexit
import logging
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.plants import plants_api
from app.blueprints.api.tasks import tasks_api
from app.config import load_config, setup_logging


def create_app(config_overrides: dict[str, Any] | None = None) -> Flask:
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key.lower(), value)

    # Configure logging early so container startup is visible
    setup_logging(debug=config.DEBUG, log_dir=config.log_dir)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.config["SESSION_COOKIE_HTTPONLY"] = True
    flask_app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    flask_app.config["SESSION_COOKIE_SECURE"] = config.environment == "production"
    if config_overrides and "TESTING" in config_overrides:
        flask_app.config["TESTING"] = bool(config_overrides["TESTING"])

    from app.services.container import ServiceContainer

    container = ServiceContainer.build(config)
    container.database.init_app(flask_app)
    flask_app.config["CONTAINER"] = container
    atexit.register(container.shutdown)

    # Global JSON error handler for anything that escapes safe_route
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            raise exc
        from app.domain.exceptions import PlantCareError
        from app.utils.http import error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, PlantCareError):
            status = exc.http_status
            if status >= 500:
                return safe_error(exc, status, context=type(exc).__name__)
            # 4xx: the message was written for the caller
            return error_response(str(exc) or "Request failed", status, details=exc.detail or None)

        return safe_error(exc, 500, context="unhandled")

    V1 = "/api/v1"
    flask_app.register_blueprint(plants_api, url_prefix=f"{V1}/plants")
    flask_app.register_blueprint(tasks_api, url_prefix=f"{V1}/tasks")

    for bp_name in flask_app.blueprints:
        logging.info(" Registered blueprint: %s", bp_name)

    logging.getLogger(__name__).info("Plant care application initialized successfully.")
    return flask_app


__all__ = ["create_app"]
