"""Leaderboard page and JSON endpoints."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from flask import Blueprint, current_app, jsonify, render_template, request

from codewars_leaderboard.fetcher import UserFetcher
from codewars_leaderboard.models import BatchResult, LeaderboardRow
from codewars_leaderboard.ranking import (
    OVERALL_CATEGORY,
    extract_ranking_categories,
    extract_usernames,
    rank_users,
    resolve_category,
)

logger = logging.getLogger(__name__)

leaderboard_bp = Blueprint("leaderboard", __name__)

STATUS_EMPTY = "empty"
STATUS_NOT_FOUND = "not_found"
STATUS_PARTIAL = "partial"
STATUS_OK = "ok"


@dataclass
class LeaderboardView:
    usernames: List[str]
    status: str
    category: str = OVERALL_CATEGORY
    categories: List[str] = field(default_factory=lambda: [OVERALL_CATEGORY])
    rows: List[LeaderboardRow] = field(default_factory=list)
    invalid_users: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "category": self.category,
            "categories": self.categories,
            "rows": [row.to_dict() for row in self.rows],
            "invalid_users": self.invalid_users,
        }


def _get_fetcher() -> UserFetcher:
    return current_app.config["USER_FETCHER"]


def _fetch_batch(usernames: List[str]) -> BatchResult:
    if not usernames:
        return BatchResult()
    return _get_fetcher().fetch_users(usernames)


def _build_view(raw_usernames: str, requested_category: str) -> LeaderboardView:
    usernames = extract_usernames(raw_usernames)
    if not usernames:
        return LeaderboardView(usernames=[], status=STATUS_EMPTY)

    batch = _fetch_batch(usernames)
    categories = extract_ranking_categories(batch.valid_users)
    category = resolve_category(requested_category, categories)

    if batch.all_failed:
        status = STATUS_NOT_FOUND
    elif batch.partially_failed:
        status = STATUS_PARTIAL
    else:
        status = STATUS_OK

    return LeaderboardView(
        usernames=usernames,
        status=status,
        category=category,
        categories=categories,
        rows=rank_users(batch.valid_users, category),
        invalid_users=list(batch.invalid_users),
    )


@leaderboard_bp.route("/", methods=["GET"])
def leaderboard_page():
    """Render the leaderboard form, selector and table."""
    raw_usernames = request.args.get("usernames") or ""
    view = _build_view(raw_usernames, request.args.get("category") or "")
    if view.status == STATUS_NOT_FOUND:
        logger.info("No users found for %s", view.usernames)
    return render_template("leaderboard.html", view=view, raw_usernames=raw_usernames)


@leaderboard_bp.route("/api/users", methods=["GET"])
def get_users():
    """Return the raw batch partition for the requested usernames."""
    usernames = extract_usernames(request.args.get("usernames"))
    return jsonify(_fetch_batch(usernames).to_dict())


@leaderboard_bp.route("/api/leaderboard", methods=["GET"])
def get_leaderboard():
    """Return ranked rows for the requested usernames and category."""
    view = _build_view(request.args.get("usernames") or "", request.args.get("category") or "")
    return jsonify(view.to_dict())
