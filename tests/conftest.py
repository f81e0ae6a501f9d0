"""Shared pytest fixtures for the tilebench project."""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from typing import Any

import httpx
import mapbox_vector_tile
import pytest
from PIL import Image

from tilebench.config import BenchConfig


def _sprite_png() -> bytes:
    sheet = Image.new("RGBA", (4, 2), (0, 0, 0, 0))
    sheet.paste((255, 0, 0, 255), (0, 0, 2, 2))
    sheet.paste((0, 0, 255, 255), (2, 0, 4, 2))
    buffer = io.BytesIO()
    sheet.save(buffer, format="PNG")
    return buffer.getvalue()


STYLE_DOCUMENT: dict[str, Any] = {
    "version": 8,
    "name": "Test Streets",
    "sprite": "mapbox://sprites/mapbox/streets-v9",
    "glyphs": "mapbox://fonts/mapbox/{fontstack}/{range}.pbf",
    "sources": {"composite": {"type": "vector", "url": "mapbox://test.streets"}},
    "layers": [
        {"id": "background", "type": "background"},
        {
            "id": "road",
            "type": "line",
            "source": "composite",
            "source-layer": "road",
            "filter": ["==", "$type", "LineString"],
            "paint": {"line-width": 1},
        },
        {"id": "road-casing", "ref": "road", "paint": {"line-width": 3}},
        {
            "id": "poi-label",
            "type": "symbol",
            "source": "composite",
            "source-layer": "poi_label",
            "layout": {
                "text-field": "{name}",
                "text-font": ["Open Sans Regular"],
                "icon-image": "{maki}-15",
            },
        },
    ],
}

SPRITE_INDEX: dict[str, Any] = {
    "cafe-15": {"x": 0, "y": 0, "width": 2, "height": 2, "pixelRatio": 1},
    "park-15": {"x": 2, "y": 0, "width": 2, "height": 2, "pixelRatio": 1},
}


def encode_tile() -> bytes:
    return mapbox_vector_tile.encode(
        [
            {
                "name": "road",
                "features": [
                    {"geometry": "LINESTRING(0 0, 10 10)", "properties": {"class": "street"}},
                    {"geometry": "LINESTRING(20 20, 30 30, 40 20)", "properties": {"class": "main"}},
                ],
            },
            {
                "name": "poi_label",
                "features": [
                    {"geometry": "POINT(5 5)", "properties": {"name": "Cafe", "maki": "cafe"}},
                    {"geometry": "POINT(7 7)", "properties": {"name": "Park", "maki": "park"}},
                ],
            },
        ]
    )


class FixtureServer:
    """In-memory stand-in for the style, tile, sprite and font endpoints."""

    def __init__(self) -> None:
        self.style: dict[str, Any] = json.loads(json.dumps(STYLE_DOCUMENT))
        self.tile = encode_tile()
        self.sprite_png = _sprite_png()
        self.requests: list[httpx.Request] = []
        self.fail_paths: set[str] = set()

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if any(fragment in path for fragment in self.fail_paths):
            return httpx.Response(503, text="unavailable")
        if path == "/styles/v1/mapbox/streets-v9":
            return httpx.Response(200, json=self.style)
        if path.endswith("/sprite.json"):
            return httpx.Response(200, json=SPRITE_INDEX)
        if path.endswith("/sprite.png"):
            return httpx.Response(200, content=self.sprite_png)
        if path.startswith("/fonts/v1/") and path.endswith(".pbf"):
            glyph_range = path.rsplit("/", 1)[-1]
            return httpx.Response(200, content=f"glyphs:{glyph_range}".encode())
        if path.endswith(".vector.pbf"):
            return httpx.Response(200, content=self.tile)
        return httpx.Response(404, text="not found")

    def client_factory(self) -> Callable[[], httpx.AsyncClient]:
        transport = httpx.MockTransport(self.handler)
        return lambda: httpx.AsyncClient(transport=transport)


@pytest.fixture
def fixture_server() -> FixtureServer:
    return FixtureServer()


@pytest.fixture
def bench_config() -> BenchConfig:
    return BenchConfig(access_token="test-token", sample_count=3)
