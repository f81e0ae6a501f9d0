"""
Tile parsing benchmark.

Each unit measures how long the worker takes to parse one vector tile into
buckets. Setup fetches the style document and tile for the unit's coordinate,
loads the style engine and runs one parse with providers that go through the
engine and remember every glyph and icon payload. The measured ``bench``
calls then answer the worker's actor requests from that cache only, so they
never touch the network.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from tilebench.actor import ActorStub, Callback, Handler, ViolationHook, terminate
from tilebench.config import BenchConfig
from tilebench.fixtures.coordinates import DEFAULT_COORDINATES, Coordinate
from tilebench.fixtures.provider import FixtureProvider
from tilebench.harness.unit import UnitFactory
from tilebench.style.engine import StyleEngine, identity_transform
from tilebench.style.layers import LayerIndex, deref_layers
from tilebench.tile.decoder import TileDecoder
from tilebench.tile.worker import ParsedTile, WorkerTile

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], httpx.AsyncClient]


class Engine(Protocol):
    async def load(self) -> None:
        ...

    def get_glyphs(self, zoom: float, params: Any, callback: Callback) -> None:
        ...

    def get_images(self, zoom: float, params: Any, callback: Callback) -> None:
        ...


EngineFactory = Callable[[Mapping[str, Any], httpx.AsyncClient], Engine]


def cache_key(params: Any) -> str:
    """Serialize request parameters into a stable cache key."""
    return json.dumps(params, sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True, slots=True)
class ResourceProviders:
    """Glyph and icon providers answering the worker's actor requests."""

    glyphs: Handler
    images: Handler


class TileParseBenchmark:
    """Benchmark unit parsing the tile at ``coordinate``."""

    def __init__(
        self,
        coordinate: Coordinate,
        config: BenchConfig,
        *,
        client_factory: ClientFactory | None = None,
        engine_factory: EngineFactory | None = None,
        decoder: TileDecoder | None = None,
        on_violation: ViolationHook = terminate,
    ) -> None:
        self.name = f"buffer {coordinate}"
        self.coordinate = coordinate
        self._config = config
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=config.timeout)
        )
        self._engine_factory = engine_factory or self._default_engine
        self._on_violation = on_violation
        self.worker_tile = WorkerTile(coordinate, config.worker, decoder=decoder)
        self.glyphs: dict[str, Any] = {}
        self.icons: dict[str, Any] = {}
        self.layer_index: LayerIndex | None = None
        self.tile: bytes | None = None

    async def setup(self) -> None:
        self.glyphs = {}
        self.icons = {}

        async with self._client_factory() as client:
            provider = FixtureProvider(self._config, client)
            style, tile = await asyncio.gather(
                provider.fetch_style(), provider.fetch_tile(self.coordinate)
            )
            self.layer_index = LayerIndex(deref_layers(style.get("layers", [])))
            self.tile = tile

            engine = self._engine_factory(style, client)
            await engine.load()

            def preload_glyphs(params: Any, callback: Callback) -> None:
                def _store(error: BaseException | None, glyphs: Any) -> None:
                    if error is None:
                        self.glyphs[cache_key(params)] = glyphs
                    callback(error, glyphs)

                engine.get_glyphs(0, params, _store)

            def preload_images(params: Any, callback: Callback) -> None:
                def _store(error: BaseException | None, icons: Any) -> None:
                    if error is None:
                        self.icons[cache_key(params)] = icons
                    callback(error, icons)

                engine.get_images(0, params, _store)

            await self.bench(
                ResourceProviders(glyphs=preload_glyphs, images=preload_images)
            )
        logger.info(
            f"Prepared {self.name}: {len(self.layer_index)} layers, "
            f"{len(self.tile)} tile bytes"
        )

    async def bench(self, providers: ResourceProviders | None = None) -> ParsedTile:
        if self.tile is None or self.layer_index is None:
            raise RuntimeError(f"{self.name} has not been set up")
        providers = providers or self.cached_providers()
        actor = ActorStub(
            {"getGlyphs": providers.glyphs, "getImages": providers.images},
            on_violation=self._on_violation,
        )
        return await self.worker_tile.parse(self.tile, self.layer_index, actor)

    def cached_providers(self) -> ResourceProviders:
        """Providers that answer from the setup cache without fetching."""

        def cached_glyphs(params: Any, callback: Callback) -> None:
            callback(None, self.glyphs.get(cache_key(params)))

        def cached_images(params: Any, callback: Callback) -> None:
            callback(None, self.icons.get(cache_key(params)))

        return ResourceProviders(glyphs=cached_glyphs, images=cached_images)

    def _default_engine(
        self, document: Mapping[str, Any], client: httpx.AsyncClient
    ) -> StyleEngine:
        return StyleEngine(
            document,
            client=client,
            transform_request=identity_transform,
            api_url=self._config.api_url,
            access_token=self._config.access_token,
        )


def buffer_suite(
    config: BenchConfig,
    *,
    coordinates: Iterable[Coordinate] = DEFAULT_COORDINATES,
    **options: Any,
) -> list[UnitFactory]:
    """One unit factory per coordinate, in coordinate order."""
    return [
        functools.partial(TileParseBenchmark, coordinate, config, **options)
        for coordinate in coordinates
    ]
