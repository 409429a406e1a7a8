"""Codewars leaderboard: batch user lookups and ranked tables."""

from codewars_leaderboard.fetcher import UserFetcher, fetch_users
from codewars_leaderboard.models import BatchResult, FetchOutcome, LeaderboardRow, UserRecord

__all__ = [
    "BatchResult",
    "FetchOutcome",
    "LeaderboardRow",
    "UserFetcher",
    "UserRecord",
    "fetch_users",
]
