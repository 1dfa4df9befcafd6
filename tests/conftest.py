"""Shared test configuration and fixtures."""

import json
import logging

import httpx
import pytest

from tmdblink.cli import cleanup_logging
from tmdblink.config import LinkerConfig


@pytest.fixture(scope="function", autouse=True)
def cleanup_logging_handlers():
    """Automatically cleanup logging handlers after each test to prevent ResourceWarnings."""
    yield
    cleanup_logging()


@pytest.fixture(scope="function", autouse=True)
def reset_logging():
    """Reset logging configuration after each test."""
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def no_token_in_environment(monkeypatch):
    """Keep a developer's TMDB_API_TOKEN from leaking into tests."""
    monkeypatch.delenv("TMDB_API_TOKEN", raising=False)


@pytest.fixture
def config(tmp_path):
    return LinkerConfig(
        input_path=tmp_path / "imdb.ttl",
        output_path=tmp_path / "tmdb.ttl",
        tmdb_api_token="dummy-token",
    )


def tmdb_transport(responses: dict, requests: list | None = None):
    """Build a MockTransport answering ``/find/{imdb_id}`` from ``responses``.

    Values are either ``(status, body)`` tuples or exceptions to raise.
    Unknown ids get an empty ``movie_results`` list.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        imdb_id = request.url.path.rsplit("/", 1)[-1]
        answer = responses.get(imdb_id, (200, {"movie_results": []}))
        if isinstance(answer, Exception):
            raise answer
        status, body = answer
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, content=json.dumps(body).encode())

    return httpx.MockTransport(handler)


@pytest.fixture
def make_transport():
    return tmdb_transport
