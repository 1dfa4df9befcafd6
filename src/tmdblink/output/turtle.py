"""Turtle output document for matched TMDB movies."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, TextIO

from tmdblink.error_handling import OutputDestinationError

if TYPE_CHECKING:
    from tmdblink.services.tmdb import MatchedRecord

logger = logging.getLogger(__name__)

TURTLE_PREAMBLE = """@prefix tmm: <https://www.themoviedb.org/movie/> .
@prefix tmdb: <https://developers.themoviedb.org/3#> .
@prefix imdb: <https://www.imdb.com/interfaces/> .

tmdb:Movie rdf:type owl:Class .

tmdb:id rdf:type owl:DatatypeProperty .
tmdb:poster rdf:type owl:DatatypeProperty .
tmdb:lang rdf:type owl:DatatypeProperty .

imdb:id rdf:type owl:DatatypeProperty .

"""


def _literal(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r")
    return f'"{escaped}"'


def format_record(record: MatchedRecord) -> str:
    """Serialize one record as a single complete Turtle statement line."""
    return (
        f"tmm:{record.tmdb_id} rdf:type tmdb:Movie ; "
        f"tmdb:id {_literal(str(record.tmdb_id))} ; "
        f"imdb:id {_literal(record.imdb_id)} ; "
        f"tmdb:poster {_literal(record.poster_path)} ; "
        f"tmdb:lang {_literal(record.language)} .\n"
    )


class TurtleSink:
    """Append-only Turtle document shared by concurrent workers.

    Lines go to a ``.part`` file next to the destination; every write holds
    ``_lock`` for the whole line. The destination is replaced only when the
    context exits cleanly, so an aborted batch never leaves a document that
    looks complete.
    """

    def __init__(self, path: Path):
        self.path = path
        self.partial_path = path.with_name(f"{path.name}.part")
        self.records_written = 0
        self._lock = asyncio.Lock()
        self._handle: TextIO | None = None

    async def __aenter__(self) -> TurtleSink:
        try:
            self._handle = open(self.partial_path, "w", encoding="utf-8")
            self._handle.write(TURTLE_PREAMBLE)
            self._handle.flush()
        except OSError as e:
            self._discard()
            raise OutputDestinationError(
                self.path,
                details=str(e),
                original_error=e,
            ) from e
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            logger.debug("Discarding partial output %s", self.partial_path)
            self._discard()
            return

        try:
            self._close()
            os.replace(self.partial_path, self.path)
        except OSError as e:
            self._discard()
            raise OutputDestinationError(
                self.path,
                details=str(e),
                original_error=e,
            ) from e

        logger.info("Wrote %s records to %s", self.records_written, self.path)

    async def record(self, record: MatchedRecord) -> None:
        """Append one record line to the document."""
        line = format_record(record)
        async with self._lock:
            if self._handle is None:
                msg = "TurtleSink must be entered before use"
                raise RuntimeError(msg)
            try:
                self._handle.write(line)
                self._handle.flush()
            except OSError as e:
                raise OutputDestinationError(
                    self.path,
                    details=str(e),
                    original_error=e,
                ) from e
            self.records_written += 1

    def _close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _discard(self) -> None:
        self._close()
        self.partial_path.unlink(missing_ok=True)


__all__ = ["TURTLE_PREAMBLE", "TurtleSink", "format_record"]
