"""Vector tile decoding behind a narrow interface."""

from __future__ import annotations

from typing import Any, Protocol

import mapbox_vector_tile

DecodedTile = dict[str, dict[str, Any]]


class TileDecoder(Protocol):
    """Parse a binary-encoded tile into layers of features."""

    def decode(self, raw: bytes) -> DecodedTile:
        ...


class MapboxVectorTileDecoder:
    """Decode Mapbox Vector Tile protobuf payloads with ``mapbox-vector-tile``."""

    def decode(self, raw: bytes) -> DecodedTile:
        return mapbox_vector_tile.decode(raw)
