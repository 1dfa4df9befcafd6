"""IMDb identifier extraction from Turtle input."""

import logging
import re
from collections.abc import Iterable
from pathlib import Path

from tmdblink.error_handling import InputSourceError

logger = logging.getLogger(__name__)

IMDB_ID_PATTERN = re.compile(r"imt:(tt\d+)")


def extract_imdb_ids(lines: Iterable[str]) -> list[str]:
    """Return the first IMDb id found on each line, in input order."""
    ids: list[str] = []
    for line in lines:
        match = IMDB_ID_PATTERN.search(line)
        if match:
            ids.append(match.group(1))
    return ids


def read_imdb_ids(path: Path) -> list[str]:
    """Read the input file once and extract every IMDb id it references."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            ids = extract_imdb_ids(f)
    except OSError as e:
        raise InputSourceError(path, details=str(e), original_error=e) from e

    logger.info("Found %s IMDb ids in %s", len(ids), path)
    return ids


__all__ = ["IMDB_ID_PATTERN", "extract_imdb_ids", "read_imdb_ids"]
