"""Username parsing, ranking categories and leaderboard ordering."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from codewars_leaderboard.models import LeaderboardRow, UserRecord

OVERALL_CATEGORY = "overall"


def extract_usernames(raw_input: Optional[str]) -> List[str]:
    """Split comma-separated input into trimmed, non-empty usernames.

    Duplicates are kept; each occurrence is looked up on its own.
    """
    if not raw_input:
        return []
    return [name.strip() for name in raw_input.split(",") if name.strip()]


def extract_ranking_categories(users: Iterable[UserRecord]) -> List[str]:
    """Return ``overall`` followed by every language seen, in first-seen order."""
    categories = {OVERALL_CATEGORY: None}
    for user in users:
        for language in user.language_scores:
            categories.setdefault(language, None)
    return list(categories)


def resolve_category(requested: Optional[str], categories: Sequence[str]) -> str:
    """Fall back to ``overall`` when the requested category is not on offer."""
    requested = (requested or "").strip()
    if requested and requested in categories:
        return requested
    return OVERALL_CATEGORY


def get_score(user: UserRecord, category: str) -> Optional[float]:
    """Score for ``category``; None means the user is not ranked in it."""
    if category == OVERALL_CATEGORY:
        return user.overall_score if user.overall_score is not None else 0
    return user.language_scores.get(category)


def rank_users(users: Iterable[UserRecord], category: str) -> List[LeaderboardRow]:
    """Build leaderboard rows for ``category``, highest score first."""
    rows = []
    for user in users:
        score = get_score(user, category)
        if score is None:
            continue
        rows.append(LeaderboardRow(username=user.username, clan=user.clan or "", score=score))
    rows.sort(key=lambda row: row.score, reverse=True)
    return rows
