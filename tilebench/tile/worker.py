"""
Worker-side tile parsing.

:class:`WorkerTile` turns a raw vector tile into per-family buckets: it
decodes the tile, matches every layer family of its source against the
decoded source layers, counts the geometry each bucket would upload and
collects the glyph and icon dependencies of symbol layers. Dependencies are
requested through the worker's actor (``getGlyphs``/``getImages``) and the
parse completes once both answers arrive.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from tilebench.config import WorkerTileConfig
from tilebench.fixtures.coordinates import Coordinate
from tilebench.style.filters import create_filter
from tilebench.style.layers import LayerIndex, StyleLayer
from tilebench.tile.decoder import MapboxVectorTileDecoder, TileDecoder

logger = logging.getLogger(__name__)

DEFAULT_TEXT_FONT = ("Open Sans Regular", "Arial Unicode MS Regular")
_TOKEN = re.compile(r"{([^{}]+)}")


class Actor(Protocol):
    async def request(self, action: str, params: Any) -> Any:
        ...


@dataclass(slots=True)
class Bucket:
    """Renderable geometry for one layer family."""

    layer_ids: list[str]
    type: str
    source_layer: str
    feature_count: int
    vertex_count: int


@dataclass(slots=True)
class ParsedTile:
    """Outcome of a parse: buckets plus the resources they depend on."""

    buckets: list[Bucket]
    glyphs: dict[str, Any] = field(default_factory=dict)
    icons: dict[str, Any] = field(default_factory=dict)

    @property
    def vertex_count(self) -> int:
        return sum(bucket.vertex_count for bucket in self.buckets)


def resolve_tokens(properties: Mapping[str, Any], template: str) -> str:
    """Replace ``{field}`` tokens with feature property values."""
    def _substitute(match: re.Match[str]) -> str:
        value = properties.get(match.group(1))
        return "" if value is None else str(value)

    return _TOKEN.sub(_substitute, template)


def count_vertices(coordinates: Any) -> int:
    if not isinstance(coordinates, (list, tuple)) or not coordinates:
        return 0
    if isinstance(coordinates[0], (int, float)):
        return 1
    return sum(count_vertices(part) for part in coordinates)


def _geometry_vertices(feature: Mapping[str, Any]) -> int:
    geometry = feature.get("geometry")
    if isinstance(geometry, Mapping):
        return count_vertices(geometry.get("coordinates"))
    return count_vertices(geometry)


class WorkerTile:
    """Parse one tile coordinate into buckets."""

    def __init__(
        self,
        coordinate: Coordinate,
        config: WorkerTileConfig | None = None,
        *,
        decoder: TileDecoder | None = None,
    ) -> None:
        self.coordinate = coordinate
        self.config = config or WorkerTileConfig()
        self.zoom = coordinate.zoom
        self._decoder = decoder or MapboxVectorTileDecoder()

    async def parse(self, raw: bytes, layer_index: LayerIndex, actor: Actor) -> ParsedTile:
        decoded = self._decoder.decode(raw)
        buckets: list[Bucket] = []
        stacks: dict[str, set[int]] = {}
        icons: set[str] = set()

        for source_layer_id, families in layer_index.families(self.config.source).items():
            source_layer = decoded.get(source_layer_id)
            if not source_layer:
                continue
            features = source_layer.get("features", [])
            for family in families:
                leader = family[0]
                if leader.is_hidden(self.zoom):
                    continue
                matches = create_filter(leader.filter)
                selected = [feature for feature in features if matches(feature)]
                if not selected:
                    continue
                if leader.type == "symbol":
                    self._collect_dependencies(leader, selected, stacks, icons)
                buckets.append(
                    Bucket(
                        layer_ids=[layer.id for layer in family],
                        type=leader.type,
                        source_layer=source_layer_id,
                        feature_count=len(selected),
                        vertex_count=sum(_geometry_vertices(f) for f in selected),
                    )
                )

        glyphs, images = await asyncio.gather(
            self._request_glyphs(actor, stacks), self._request_images(actor, icons)
        )
        logger.debug(
            f"Parsed tile {self.coordinate} into {len(buckets)} buckets "
            f"({len(glyphs)} font stacks, {len(images)} icons)"
        )
        return ParsedTile(buckets=buckets, glyphs=glyphs or {}, icons=images or {})

    def _collect_dependencies(
        self,
        layer: StyleLayer,
        features: Iterable[Mapping[str, Any]],
        stacks: dict[str, set[int]],
        icons: set[str],
    ) -> None:
        text_field = layer.layout.get("text-field")
        icon_image = layer.layout.get("icon-image")
        fontstack = ",".join(layer.layout.get("text-font", DEFAULT_TEXT_FONT))
        for feature in features:
            properties = feature.get("properties") or {}
            if isinstance(text_field, str):
                text = resolve_tokens(properties, text_field)
                if text:
                    stacks.setdefault(fontstack, set()).update(ord(ch) for ch in text)
            if isinstance(icon_image, str):
                icon = resolve_tokens(properties, icon_image)
                if icon:
                    icons.add(icon)

    async def _request_glyphs(self, actor: Actor, stacks: dict[str, set[int]]) -> Any:
        if not stacks:
            return {}
        params = {
            "uid": self.config.uid,
            "stacks": {stack: sorted(points) for stack, points in sorted(stacks.items())},
        }
        return await actor.request("getGlyphs", params)

    async def _request_images(self, actor: Actor, icons: set[str]) -> Any:
        if not icons:
            return {}
        return await actor.request("getImages", {"icons": sorted(icons)})
