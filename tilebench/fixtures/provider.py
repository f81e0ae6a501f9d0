"""
Fixture provider fetching style documents and raw tiles over HTTP.

The access token comes from the :class:`~tilebench.config.BenchConfig`
handed to the provider; it is appended to each request URL.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tilebench.config import BenchConfig
from tilebench.fixtures.coordinates import Coordinate
from tilebench.style.urls import with_access_token

logger = logging.getLogger(__name__)


class FixtureError(RuntimeError):
    """A fixture could not be fetched or decoded."""


class FixtureProvider:
    """Resolve and fetch the style document and tile buffer for a coordinate."""

    def __init__(self, config: BenchConfig, client: httpx.AsyncClient) -> None:
        self._config = config
        self._client = client

    def style_url(self) -> str:
        return self._authorize(self._config.style_url)

    def tile_url(self, coordinate: Coordinate) -> str:
        url = self._config.tile_url.format(
            zoom=coordinate.zoom, row=coordinate.row, column=coordinate.column
        )
        return self._authorize(url)

    async def fetch_style(self) -> dict[str, Any]:
        url = self.style_url()
        response = await self._get(url)
        try:
            document = response.json()
        except ValueError as exc:
            raise FixtureError(f"Style document is not valid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise FixtureError("Style document must be a JSON object")
        return document

    async def fetch_tile(self, coordinate: Coordinate) -> bytes:
        response = await self._get(self.tile_url(coordinate))
        return response.content

    async def _get(self, url: str) -> httpx.Response:
        logger.debug(f"Fetching fixture {url.split('?', 1)[0]}")
        try:
            response = await self._client.get(url, timeout=self._config.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FixtureError(f"Failed to fetch fixture: {exc}") from exc
        return response

    def _authorize(self, url: str) -> str:
        return with_access_token(url, self._config.access_token)
