#!/usr/bin/env python3
"""
Fetch a batch of Codewars users and print the leaderboard.

Usage:
    python scripts/fetch_leaderboard.py alice,bob carol
    python scripts/fetch_leaderboard.py alice,bob --category python
    python scripts/fetch_leaderboard.py alice,bob --workers 4 --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Allow running from project root or scripts/ dir
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from codewars_leaderboard.config import get_fetch_settings
from codewars_leaderboard.fetcher import UserFetcher
from codewars_leaderboard.logging_utils import setup_logging
from codewars_leaderboard.models import LeaderboardRow
from codewars_leaderboard.ranking import (
    OVERALL_CATEGORY,
    extract_ranking_categories,
    extract_usernames,
    rank_users,
    resolve_category,
)

log = logging.getLogger("fetch_leaderboard")


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch Codewars users and print a leaderboard")
    parser.add_argument("usernames", nargs="+",
                        help="Usernames, comma-separated and/or space-separated")
    parser.add_argument("--category", default=OVERALL_CATEGORY,
                        help="Ranking category: 'overall' or a language name")
    parser.add_argument("--workers", type=positive_int, default=None,
                        help="Parallel lookups (default from FETCH_MAX_WORKERS)")
    parser.add_argument("--json", action="store_true", dest="as_json",
                        help="Print JSON instead of a table")
    parser.add_argument("--quiet", action="store_true", help="No console logging")
    return parser.parse_args(argv)


def format_table(rows: List[LeaderboardRow]) -> str:
    name_width = max([len("Username")] + [len(r.username) for r in rows])
    clan_width = max([len("Clan")] + [len(r.clan) for r in rows])
    lines = [f"{'#':>3}  {'Username':<{name_width}}  {'Clan':<{clan_width}}  Score"]
    for rank, row in enumerate(rows, 1):
        lines.append(f"{rank:>3}  {row.username:<{name_width}}  {row.clan:<{clan_width}}  {row.score}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(quiet=args.quiet)

    usernames = extract_usernames(",".join(args.usernames))
    if not usernames:
        log.info("Nothing to fetch.")
        return 0

    settings = get_fetch_settings()
    workers = args.workers if args.workers is not None else settings.max_workers
    log.info("Fetching %d users with up to %d workers...", len(usernames), workers)

    with UserFetcher(settings.api_base, max_workers=workers, timeout=settings.timeout) as fetcher:
        batch = fetcher.fetch_users(usernames)

    categories = extract_ranking_categories(batch.valid_users)
    category = resolve_category(args.category, categories)
    if category != args.category:
        log.warning("Nobody has a '%s' ranking; showing %s", args.category, category)
    rows = rank_users(batch.valid_users, category)

    if args.as_json:
        print(json.dumps({
            "category": category,
            "categories": categories,
            "rows": [row.to_dict() for row in rows],
            "invalid_users": batch.invalid_users,
        }, indent=2))
        return 0

    if batch.all_failed:
        print("No users found.")
        return 0

    print(f"Ranking: {category}")
    print(format_table(rows))
    if batch.invalid_users:
        print()
        print(f"Could not find: {', '.join(batch.invalid_users)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
