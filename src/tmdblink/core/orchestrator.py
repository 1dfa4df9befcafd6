"""Batch orchestration: read ids, look them up, write the Turtle document."""

import asyncio
import logging

import httpx

from tmdblink.config import LinkerConfig
from tmdblink.core.dispatcher import BatchSummary, BoundedDispatcher
from tmdblink.error_handling import ConfigurationError
from tmdblink.identify.extractor import read_imdb_ids
from tmdblink.output.turtle import TurtleSink
from tmdblink.services.tmdb import TMDBFindService

logger = logging.getLogger(__name__)


class LinkOrchestrator:
    """Runs one complete linking batch."""

    def __init__(
        self,
        config: LinkerConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport

    async def run(self) -> BatchSummary:
        """Run the batch. Fatal errors are raised before any lookup starts."""
        if not self.config.tmdb_api_token:
            raise ConfigurationError(
                "Please provide the TMDB API token",
                solution="Pass it as the first argument to 'tmdblink link' "
                "or set TMDB_API_TOKEN",
            )

        dispatcher = BoundedDispatcher(self.config.max_workers)

        # Input is read in full before the output file is touched.
        imdb_ids = read_imdb_ids(self.config.input_path)

        async with TurtleSink(self.config.output_path) as sink:
            async with TMDBFindService(
                self.config,
                transport=self._transport,
            ) as tmdb:
                summary = await dispatcher.run(imdb_ids, tmdb.lookup, sink)

        return summary


def run_batch(
    config: LinkerConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BatchSummary:
    """Synchronous entry point used by the CLI."""
    return asyncio.run(LinkOrchestrator(config, transport=transport).run())


__all__ = ["LinkOrchestrator", "run_batch"]
