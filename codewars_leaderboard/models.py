"""Data models for batch user lookups and leaderboard rows."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class MalformedUserPayload(ValueError):
    """Raised when a decoded response body cannot be read as a user record."""


def _as_score(value: Any) -> Optional[float]:
    # bool is an int subclass; a True score is never meaningful
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _nested_score(container: Any) -> Optional[float]:
    if not isinstance(container, dict):
        return None
    return _as_score(container.get("score"))


@dataclass
class UserRecord:
    """A user as returned by the ranking API.

    Only the fields the leaderboard reads are lifted out; everything else
    stays available through ``raw``.
    """

    username: str
    clan: Optional[str] = None
    overall_score: Optional[float] = None
    language_scores: Dict[str, float] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> "UserRecord":
        """Build a record from a decoded JSON body.

        Raises MalformedUserPayload when the body is not an object or has no
        string ``username``. Nested rank fields that are missing or of the
        wrong shape are treated as absent.
        """
        if not isinstance(payload, dict):
            raise MalformedUserPayload(
                f"expected a JSON object, got {type(payload).__name__}"
            )
        username = payload.get("username")
        if not isinstance(username, str) or not username:
            raise MalformedUserPayload("payload has no username")

        clan = payload.get("clan")
        if not isinstance(clan, str):
            clan = None

        ranks = payload.get("ranks")
        if not isinstance(ranks, dict):
            ranks = {}

        languages = ranks.get("languages")
        language_scores: Dict[str, float] = {}
        if isinstance(languages, dict):
            for name, entry in languages.items():
                score = _nested_score(entry)
                if score is not None:
                    language_scores[str(name)] = score

        return cls(
            username=username,
            clan=clan,
            overall_score=_nested_score(ranks.get("overall")),
            language_scores=language_scores,
            raw=payload,
        )


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one lookup: a record on success, a reason on failure."""

    identifier: str
    record: Optional[UserRecord] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.record is None) == (self.error is None):
            raise ValueError("FetchOutcome needs exactly one of record or error")

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, identifier: str, record: UserRecord) -> "FetchOutcome":
        return cls(identifier=identifier, record=record)

    @classmethod
    def failure(cls, identifier: str, error: str) -> "FetchOutcome":
        return cls(identifier=identifier, error=error)


@dataclass
class BatchResult:
    """Partition of a lookup batch into found records and failed identifiers.

    Both lists are in completion order, not request order.
    """

    valid_users: List[UserRecord] = field(default_factory=list)
    invalid_users: List[str] = field(default_factory=list)

    def add(self, outcome: FetchOutcome) -> None:
        if outcome.record is not None:
            self.valid_users.append(outcome.record)
        else:
            self.invalid_users.append(outcome.identifier)

    @property
    def total(self) -> int:
        return len(self.valid_users) + len(self.invalid_users)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def all_failed(self) -> bool:
        """True when lookups ran and none of them found a user."""
        return bool(self.invalid_users) and not self.valid_users

    @property
    def partially_failed(self) -> bool:
        return bool(self.invalid_users) and bool(self.valid_users)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid_users": [user.raw for user in self.valid_users],
            "invalid_users": list(self.invalid_users),
        }


@dataclass(frozen=True)
class LeaderboardRow:
    username: str
    clan: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "clan": self.clan, "score": self.score}
