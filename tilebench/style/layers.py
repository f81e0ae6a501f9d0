"""
Style layer flattening and indexing.

``deref_layers`` resolves legacy ``ref`` layers into standalone layer
definitions. :class:`LayerIndex` groups the flattened layers into families
that share everything the tile worker needs to bucket features together
(type, source, source layer, zoom range, filter, layout) and indexes the
families by source and source layer.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Final

REF_PROPERTIES: Final[tuple[str, ...]] = (
    "type",
    "source",
    "source-layer",
    "minzoom",
    "maxzoom",
    "filter",
    "layout",
)
GEOJSON_TILE_LAYER: Final[str] = "_geojsonTileLayer"

Layer = Mapping[str, Any]


def _deref_layer(layer: Layer, parent: Layer) -> dict[str, Any]:
    result = {key: value for key, value in layer.items() if key != "ref"}
    for key in REF_PROPERTIES:
        if key in parent:
            result[key] = parent[key]
    return result


def deref_layers(layers: Iterable[Layer]) -> list[dict[str, Any]]:
    """
    Return a copy of ``layers`` where every ``ref`` layer is made standalone.

    A ref layer takes the referenced layer's type, source, source layer, zoom
    range, filter and layout; its own paint properties are kept.
    """
    flattened = [dict(layer) for layer in layers]
    by_id = {layer["id"]: layer for layer in flattened}
    for index, layer in enumerate(flattened):
        if "ref" in layer:
            parent = by_id.get(layer["ref"])
            if parent is None:
                raise ValueError(
                    f"Layer '{layer.get('id')}' references unknown layer '{layer['ref']}'"
                )
            flattened[index] = _deref_layer(layer, parent)
    return flattened


@dataclass(slots=True)
class StyleLayer:
    """A flattened style layer as the tile worker sees it."""

    id: str
    type: str
    source: str = ""
    source_layer: str = GEOJSON_TILE_LAYER
    minzoom: float = 0.0
    maxzoom: float = 24.0
    filter: Any = None
    layout: dict[str, Any] = field(default_factory=dict)
    paint: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Layer) -> StyleLayer:
        return cls(
            id=config["id"],
            type=config.get("type", "background"),
            source=config.get("source", ""),
            source_layer=config.get("source-layer") or GEOJSON_TILE_LAYER,
            minzoom=config.get("minzoom", 0.0),
            maxzoom=config.get("maxzoom", 24.0),
            filter=config.get("filter"),
            layout=dict(config.get("layout") or {}),
            paint=dict(config.get("paint") or {}),
        )

    @property
    def visibility(self) -> str:
        return self.layout.get("visibility", "visible")

    def is_hidden(self, zoom: float) -> bool:
        return zoom < self.minzoom or zoom >= self.maxzoom or self.visibility == "none"

    def group_key(self) -> str:
        return json.dumps(
            [
                self.type,
                self.source,
                self.source_layer,
                self.minzoom,
                self.maxzoom,
                self.filter,
                self.layout,
            ],
            sort_keys=True,
        )


LayerFamily = list[StyleLayer]


class LayerIndex:
    """Layer families indexed by source id, then by source layer id."""

    def __init__(self, layer_configs: Iterable[Layer] = ()) -> None:
        self._layers: dict[str, StyleLayer] = {}
        self.families_by_source: dict[str, dict[str, list[LayerFamily]]] = {}
        self.replace(layer_configs)

    def __len__(self) -> int:
        return len(self._layers)

    def replace(self, layer_configs: Iterable[Layer]) -> None:
        self._layers = {}
        for config in layer_configs:
            layer = StyleLayer.from_config(config)
            self._layers[layer.id] = layer
        self._rebuild()

    def families(self, source: str) -> dict[str, list[LayerFamily]]:
        return self.families_by_source.get(source, {})

    def _rebuild(self) -> None:
        groups: dict[str, LayerFamily] = {}
        for layer in self._layers.values():
            if layer.type == "background":
                continue
            groups.setdefault(layer.group_key(), []).append(layer)

        self.families_by_source = {}
        for family in groups.values():
            leader = family[0]
            if leader.visibility == "none":
                continue
            source_group = self.families_by_source.setdefault(leader.source, {})
            source_group.setdefault(leader.source_layer, []).append(family)
