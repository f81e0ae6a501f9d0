from __future__ import annotations

import asyncio
from typing import Any

import pytest

from tilebench.style.engine import StyleEngine, StyleError, StyleImage, glyph_range_starts


async def _call(method, zoom: float, params: dict[str, Any]) -> Any:
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()

    def _callback(error, result) -> None:
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    method(zoom, params, _callback)
    return await future


def test_glyph_range_starts_cover_codepoints() -> None:
    assert glyph_range_starts([65, 66, 300, 70000, -1]) == [0, 256]


@pytest.mark.asyncio
async def test_engine_loads_sprite_and_crops_icons(fixture_server) -> None:
    async with fixture_server.client_factory()() as client:
        engine = StyleEngine(fixture_server.style, client=client, access_token="t")
        await engine.load()

        icons = await _call(engine.get_images, 0, {"icons": ["cafe-15", "unknown-15"]})

    assert set(icons) == {"cafe-15"}
    cafe = icons["cafe-15"]
    assert isinstance(cafe, StyleImage)
    assert (cafe.width, cafe.height) == (2, 2)
    assert cafe.data == bytes([255, 0, 0, 255]) * 4


@pytest.mark.asyncio
async def test_engine_fetches_each_glyph_range_once(fixture_server) -> None:
    async with fixture_server.client_factory()() as client:
        engine = StyleEngine(fixture_server.style, client=client, access_token="t")
        await engine.load()
        params = {"uid": "0", "stacks": {"Open Sans Regular": [65, 300]}}

        first = await _call(engine.get_glyphs, 0, params)
        second = await _call(engine.get_glyphs, 0, params)

    assert first == second
    assert first["Open Sans Regular"] == {0: b"glyphs:0-255.pbf", 256: b"glyphs:256-511.pbf"}
    font_requests = [path for path in fixture_server.paths() if path.startswith("/fonts/")]
    assert len(font_requests) == 2


@pytest.mark.asyncio
async def test_transform_request_is_applied(fixture_server) -> None:
    seen: list[str] = []

    def transform(url: str) -> dict[str, Any]:
        seen.append(url)
        return {"url": url, "headers": {"X-Bench": "1"}}

    async with fixture_server.client_factory()() as client:
        engine = StyleEngine(
            fixture_server.style, client=client, transform_request=transform, access_token="t"
        )
        await engine.load()

    assert len(seen) == 2
    assert all(request.headers["X-Bench"] == "1" for request in fixture_server.requests)


@pytest.mark.asyncio
async def test_sprite_failure_raises_style_error(fixture_server) -> None:
    fixture_server.fail_paths.add("sprite")

    async with fixture_server.client_factory()() as client:
        engine = StyleEngine(fixture_server.style, client=client, access_token="t")
        with pytest.raises(StyleError, match="sprite"):
            await engine.load()


@pytest.mark.asyncio
async def test_invalid_document_raises_style_error(fixture_server) -> None:
    async with fixture_server.client_factory()() as client:
        engine = StyleEngine({"version": 7, "layers": []}, client=client)
        with pytest.raises(StyleError, match="version"):
            await engine.load()


@pytest.mark.asyncio
async def test_glyph_errors_reach_the_callback(fixture_server) -> None:
    fixture_server.fail_paths.add("/fonts/")

    async with fixture_server.client_factory()() as client:
        engine = StyleEngine(fixture_server.style, client=client, access_token="t")
        with pytest.raises(StyleError, match="glyph range"):
            await _call(engine.get_glyphs, 0, {"stacks": {"Open Sans Regular": [65]}})
