"""Concurrent user lookups against the Codewars users endpoint.

Each identifier gets exactly one ``GET {base}/{identifier}``. Lookups run on
a thread pool sharing one ``httpx.Client`` and the batch returns only after
every lookup has settled. A failed lookup never aborts its siblings:

- non-2xx status            -> identifier recorded as invalid
- transport fault / timeout -> identifier recorded as invalid
- undecodable or malformed body on 2xx -> identifier recorded as invalid
"""
from __future__ import annotations

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Optional
from urllib.parse import quote

import httpx

from codewars_leaderboard.config import FetchSettings, get_fetch_settings
from codewars_leaderboard.models import BatchResult, FetchOutcome, MalformedUserPayload, UserRecord

logger = logging.getLogger(__name__)

USER_AGENT = "CodewarsLeaderboard/1.0"


class UserFetcher:
    """Look up batches of users and partition them into found / not found.

    Parameters
    ----------
    base_url : str, optional
        Users endpoint; identifiers are appended as one path segment.
        None or empty falls back to the configured ``CODEWARS_API_BASE``.
    http_client : httpx.Client, optional
        Injected client, primarily for testing. Injected clients are not
        closed by :meth:`close`.
    max_workers : int, optional
        Upper bound on concurrent lookups per batch.
    timeout : float, optional
        Per-request timeout for an owned client. None keeps the httpx default.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        settings: Optional[FetchSettings] = None
        if not base_url or max_workers is None:
            settings = get_fetch_settings()
        self.base_url = (base_url or settings.api_base).rstrip("/")
        self.max_workers = max_workers if max_workers is not None else settings.max_workers
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.timeout = timeout

        self._owns_client = http_client is None
        if http_client is None:
            client_kwargs = {"headers": {"User-Agent": USER_AGENT, "Accept": "application/json"}}
            if timeout is not None:
                client_kwargs["timeout"] = timeout
            http_client = httpx.Client(**client_kwargs)
        self._client = http_client

    @classmethod
    def from_settings(cls, settings: FetchSettings) -> "UserFetcher":
        return cls(settings.api_base, max_workers=settings.max_workers, timeout=settings.timeout)

    def __enter__(self) -> "UserFetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------
    # Single lookup
    # ------------------------------------------------------------------
    def user_url(self, identifier: str) -> str:
        return f"{self.base_url}/{quote(identifier, safe='')}"

    def fetch_user(self, identifier: str) -> FetchOutcome:
        """Look up one user. Lookup failures are returned, never raised."""
        url = self.user_url(identifier)
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Lookup for '%s' failed: %s", identifier, exc)
            return FetchOutcome.failure(identifier, f"transport error: {exc}")

        if not response.is_success:
            logger.warning("Lookup for '%s' returned HTTP %d", identifier, response.status_code)
            return FetchOutcome.failure(identifier, f"HTTP {response.status_code}")

        try:
            record = UserRecord.from_payload(response.json())
        except MalformedUserPayload as exc:
            logger.warning("Lookup for '%s' returned a malformed user: %s", identifier, exc)
            return FetchOutcome.failure(identifier, f"malformed user: {exc}")
        except ValueError as exc:
            logger.warning("Lookup for '%s' returned an undecodable body: %s", identifier, exc)
            return FetchOutcome.failure(identifier, "undecodable body")

        logger.debug("Found '%s' (requested '%s')", record.username, identifier)
        return FetchOutcome.success(identifier, record)

    def _lookup(self, identifier: str) -> FetchOutcome:
        try:
            return self.fetch_user(identifier)
        except Exception as exc:
            logger.exception("Unexpected error looking up '%s'", identifier)
            return FetchOutcome.failure(identifier, f"unexpected error: {exc}")

    # ------------------------------------------------------------------
    # Batch lookup
    # ------------------------------------------------------------------
    def fetch_users(self, identifiers: Iterable[str]) -> BatchResult:
        """Look up every identifier concurrently and wait for all of them.

        Duplicates are looked up once per occurrence. An empty input issues
        no requests.
        """
        identifiers = list(identifiers)
        result = BatchResult()
        if not identifiers:
            return result

        workers = min(self.max_workers, len(identifiers))
        logger.debug("Looking up %d users with %d workers", len(identifiers), workers)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            # each worker gets its own copy so request-scoped log context follows it
            futures = {
                pool.submit(contextvars.copy_context().run, self._lookup, identifier): identifier
                for identifier in identifiers
            }
            for future in as_completed(futures):
                result.add(future.result())

        logger.info(
            "Batch complete: %d found, %d not found (%d requested)",
            len(result.valid_users),
            len(result.invalid_users),
            len(identifiers),
        )
        return result


def fetch_users(identifiers: Iterable[str], settings: Optional[FetchSettings] = None) -> BatchResult:
    """One-shot batch lookup using configured settings."""
    with UserFetcher.from_settings(settings or get_fetch_settings()) as fetcher:
        return fetcher.fetch_users(identifiers)
