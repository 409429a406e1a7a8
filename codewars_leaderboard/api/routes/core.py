"""Health check routes."""
from __future__ import annotations

import time

from flask import Blueprint, current_app, jsonify

core_bp = Blueprint("core", __name__)


@core_bp.route("/health", methods=["GET"])
@core_bp.route("/api/health", methods=["GET"])
def health_check():
    """Report liveness plus the lookup endpoint and pool the app is using."""
    fetcher = current_app.config["USER_FETCHER"]
    return jsonify({
        "status": "ok",
        "service": "codewars-leaderboard",
        "lookup": {
            "base_url": fetcher.base_url,
            "max_workers": fetcher.max_workers,
            "timeout": fetcher.timeout,
        },
        "uptime_seconds": round(time.time() - current_app.config["STARTUP_TIME"], 3),
    })
