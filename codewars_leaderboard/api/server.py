"""Flask application factory."""
from __future__ import annotations

import atexit
import logging
import logging.handlers
import os
import time
from pathlib import Path
from typing import Optional

from flask import Flask, request
from flask_cors import CORS

from codewars_leaderboard.api.request_context import (
    RequestIdFilter,
    clear_req_id,
    get_req_id,
    resolve_req_id,
    set_req_id,
)
from codewars_leaderboard.api.routes.core import core_bp
from codewars_leaderboard.api.routes.leaderboard import leaderboard_bp
from codewars_leaderboard.config import get_fetch_settings, get_log_dir
from codewars_leaderboard.fetcher import UserFetcher

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(config_overrides: Optional[dict] = None) -> Flask:
    """Initialize and configure the Flask application.

    ``config_overrides`` may carry a ready ``USER_FETCHER`` (tests inject one
    backed by a mock transport) and a ``LOG_DIR``.
    """
    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": "*"}}, send_wildcard=True)

    # 1. Configuration
    app.config["STARTUP_TIME"] = time.time()
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(Path(app.config.get("LOG_DIR") or get_log_dir()))

    # 2. Services
    if app.config.get("USER_FETCHER") is None:
        settings = get_fetch_settings()
        app.config["FETCH_SETTINGS"] = settings
        fetcher = UserFetcher.from_settings(settings)
        app.config["USER_FETCHER"] = fetcher
        # Only the fetcher built here owns its client; injected ones are the caller's.
        atexit.register(fetcher.close)
        logger.info("Looking up users at %s (max %d workers)", settings.api_base, settings.max_workers)

    # 3. Request correlation
    app.before_request(_assign_request_id)
    app.after_request(_echo_request_id)
    app.teardown_request(_release_request_id)

    # 4. Register Blueprints
    app.register_blueprint(core_bp)
    app.register_blueprint(leaderboard_bp)

    logger.info("Codewars leaderboard initialized")
    return app


def _assign_request_id() -> None:
    set_req_id(resolve_req_id(request.headers.get(REQUEST_ID_HEADER)))


def _echo_request_id(response):
    response.headers[REQUEST_ID_HEADER] = get_req_id()
    return response


def _release_request_id(_exc: Optional[BaseException]) -> None:
    clear_req_id()


def _configure_logging(log_dir: Path) -> None:
    """Attach a rotating file handler for API diagnostics."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "api.log"

    log_level_name = os.getenv("API_LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)

    root = logging.getLogger()

    # Avoid adding duplicate handlers if re-initializing
    already_configured = any(
        isinstance(h, logging.handlers.RotatingFileHandler)
        and getattr(h, "baseFilename", "") == str(log_path.resolve())
        for h in root.handlers
    )
    if already_configured:
        return

    root.setLevel(log_level)

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=5 * 1024 * 1024, backupCount=5
    )
    file_handler.setLevel(log_level)
    file_handler.addFilter(RequestIdFilter())
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] [req=%(req_id)s] %(name)s:%(lineno)d: %(message)s"
        )
    )
    root.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)


if __name__ == "__main__":
    # Dev server entry point
    app = create_app()
    port = int(os.getenv("PORT", 8000))
    app.run(host="0.0.0.0", port=port, debug=True)
