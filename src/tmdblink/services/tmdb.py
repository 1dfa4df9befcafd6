"""TMDB external-id lookup used to link IMDb titles to TMDB movies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from tmdblink.config import LinkerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchedRecord:
    """A TMDB movie matched to the IMDb id it was looked up with."""

    tmdb_id: int
    poster_path: str
    language: str
    imdb_id: str


class FailureCause(Enum):
    TRANSPORT = "transport"
    UNEXPECTED_STATUS = "unexpected-status"
    NO_MATCH = "no-match"
    INVALID_RESPONSE = "invalid-response"


@dataclass(frozen=True)
class LookupFailure:
    """A lookup that produced no record. Never fatal to the batch."""

    imdb_id: str
    cause: FailureCause
    message: str
    status_code: int | None = None


LookupResult = MatchedRecord | LookupFailure


class TMDBFindService:
    """Async client for TMDB's ``/find`` endpoint.

    One ``httpx.AsyncClient`` is shared by every lookup so the bearer token,
    timeout and connection pool are set up once per batch. Use as an async
    context manager.
    """

    def __init__(
        self,
        config: LinkerConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TMDBFindService:
        self._client = httpx.AsyncClient(
            base_url=self.config.tmdb_base_url,
            headers={
                "Authorization": f"Bearer {self.config.tmdb_api_token}",
                "Accept": "application/json",
            },
            timeout=self.config.tmdb_request_timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def lookup(self, imdb_id: str) -> LookupResult:
        """Resolve one IMDb id to its first TMDB movie candidate."""
        if not imdb_id:
            msg = "imdb_id must be non-empty"
            raise ValueError(msg)
        if self._client is None:
            msg = "TMDBFindService must be entered before use"
            raise RuntimeError(msg)

        params = {"external_source": "imdb_id"}
        if self.config.tmdb_language:
            params["language"] = self.config.tmdb_language

        logger.debug("Looking up %s on TMDB", imdb_id)
        try:
            response = await self._client.get(f"/find/{imdb_id}", params=params)
        except httpx.RequestError as exc:
            return LookupFailure(
                imdb_id,
                FailureCause.TRANSPORT,
                f"Request failed for imdb: {imdb_id}: {exc!r}",
            )

        if response.status_code != httpx.codes.OK:
            return LookupFailure(
                imdb_id,
                FailureCause.UNEXPECTED_STATUS,
                f"Weird status code {response.status_code} for imdb: {imdb_id}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError:
            return _invalid(imdb_id, "body is not JSON")

        if not isinstance(payload, dict):
            return _invalid(imdb_id, "body is not an object")

        candidates = payload.get("movie_results") or []
        if not isinstance(candidates, list):
            return _invalid(imdb_id, "movie_results is not a list")
        if not candidates:
            return LookupFailure(
                imdb_id,
                FailureCause.NO_MATCH,
                f"No results for imdb: {imdb_id}",
            )

        # First candidate wins; TMDB rarely returns more than one per IMDb id.
        return _build_record(imdb_id, candidates[0])


def _build_record(imdb_id: str, candidate: Any) -> LookupResult:
    if not isinstance(candidate, dict):
        return _invalid(imdb_id, "candidate is not an object")

    tmdb_id = candidate.get("id")
    if not isinstance(tmdb_id, int) or isinstance(tmdb_id, bool):
        return _invalid(imdb_id, "candidate has no integer id")

    return MatchedRecord(
        tmdb_id=tmdb_id,
        poster_path=str(candidate.get("poster_path") or ""),
        language=str(candidate.get("original_language") or ""),
        imdb_id=imdb_id,
    )


def _invalid(imdb_id: str, reason: str) -> LookupFailure:
    return LookupFailure(
        imdb_id,
        FailureCause.INVALID_RESPONSE,
        f"Invalid TMDB response for imdb: {imdb_id}: {reason}",
    )


__all__ = [
    "FailureCause",
    "LookupFailure",
    "LookupResult",
    "MatchedRecord",
    "TMDBFindService",
]
