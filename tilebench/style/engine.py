"""
Style engine serving glyph and icon requests for a loaded style document.

The engine plays the role of the main-thread style in the worker protocol:
the tile worker (through its actor) asks for the glyph ranges covering the
characters it lays out and for the sprite icons it references. Requests use a
callback interface, ``callback(error, result)``, matching the actor channel.

Readiness is signalled by :meth:`StyleEngine.load` completing; the error
signal is :class:`StyleError` raised from it.
"""

from __future__ import annotations

import asyncio
import io
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from PIL import Image

from tilebench.style.urls import (
    glyph_range_url,
    normalize_glyphs_url,
    normalize_sprite_url,
)

logger = logging.getLogger(__name__)

GLYPH_RANGE_SIZE = 256
MAX_CODEPOINT = 65535

Callback = Callable[[BaseException | None, Any], None]
RequestParameters = dict[str, Any]
TransformRequest = Callable[[str], RequestParameters]


class StyleError(RuntimeError):
    """The style document or one of its resources could not be loaded."""


def identity_transform(url: str) -> RequestParameters:
    """Request transform used when no map is attached."""
    return {"url": url}


@dataclass(frozen=True, slots=True)
class StyleImage:
    """An icon cropped out of the sprite sheet, as raw RGBA pixels."""

    width: int
    height: int
    pixel_ratio: float
    sdf: bool
    data: bytes


def glyph_range_starts(codepoints: Iterable[int]) -> list[int]:
    """Return the sorted start codepoints of the ranges covering ``codepoints``."""
    starts = {
        (cp // GLYPH_RANGE_SIZE) * GLYPH_RANGE_SIZE
        for cp in codepoints
        if 0 <= cp <= MAX_CODEPOINT
    }
    return sorted(starts)


class StyleEngine:
    """Load a style document's sprite and serve glyph/icon requests."""

    def __init__(
        self,
        document: Mapping[str, Any],
        *,
        client: httpx.AsyncClient,
        transform_request: TransformRequest = identity_transform,
        api_url: str = "https://api.mapbox.com",
        access_token: str | None = None,
    ) -> None:
        self._document = document
        self._client = client
        self._transform_request = transform_request
        self._api_url = api_url
        self._access_token = access_token
        self._load_task: asyncio.Task[None] | None = None
        self._sprite_index: dict[str, dict[str, Any]] = {}
        self._sprite_sheet: Image.Image | None = None
        self._ranges: dict[tuple[str, int], asyncio.Task[bytes]] = {}
        self._pending: set[asyncio.Task[Any]] = set()

    async def load(self) -> None:
        """Wait until the style is ready; raise :class:`StyleError` otherwise."""
        if self._load_task is None:
            self._load_task = asyncio.get_running_loop().create_task(self._load())
        await self._load_task

    def get_glyphs(self, zoom: float, params: Mapping[str, Any], callback: Callback) -> None:
        """Resolve ``params["stacks"]`` (fontstack -> codepoints) into glyph ranges."""
        _ = zoom
        self._dispatch(self._glyphs(params), callback)

    def get_images(self, zoom: float, params: Mapping[str, Any], callback: Callback) -> None:
        """Resolve ``params["icons"]`` (icon names) into cropped sprite images."""
        _ = zoom
        self._dispatch(self._images(params), callback)

    # --- Loading ---------------------------------------------------------- #
    async def _load(self) -> None:
        if self._document.get("version") != 8:
            raise StyleError(
                f"Unsupported style version: {self._document.get('version')!r}"
            )
        if not isinstance(self._document.get("layers"), list):
            raise StyleError("Style document has no layer list")

        sprite = self._document.get("sprite")
        if not sprite:
            return
        try:
            json_url = normalize_sprite_url(
                sprite,
                api_url=self._api_url,
                access_token=self._access_token,
                extension=".json",
            )
            png_url = normalize_sprite_url(
                sprite,
                api_url=self._api_url,
                access_token=self._access_token,
                extension=".png",
            )
            index_payload, sheet_payload = await asyncio.gather(
                self._fetch(json_url), self._fetch(png_url)
            )
            self._sprite_index = json.loads(index_payload)
            self._sprite_sheet = Image.open(io.BytesIO(sheet_payload)).convert("RGBA")
        except (httpx.HTTPError, ValueError, OSError) as exc:
            raise StyleError(f"Failed to load sprite '{sprite}': {exc}") from exc
        logger.debug(f"Loaded sprite with {len(self._sprite_index)} icons")

    async def _fetch(self, url: str) -> bytes:
        request = self._transform_request(url)
        response = await self._client.get(
            request["url"], headers=request.get("headers")
        )
        response.raise_for_status()
        return response.content

    # --- Requests --------------------------------------------------------- #
    def _dispatch(self, coroutine: Any, callback: Callback) -> None:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        def _deliver(done: asyncio.Task[Any]) -> None:
            if done.cancelled():
                callback(asyncio.CancelledError(), None)
            elif done.exception() is not None:
                callback(done.exception(), None)
            else:
                callback(None, done.result())

        task.add_done_callback(_deliver)

    async def _glyphs(self, params: Mapping[str, Any]) -> dict[str, dict[int, bytes]]:
        await self.load()
        template = self._document.get("glyphs")
        if not template:
            raise StyleError("Style document does not define a glyphs URL")
        url_template = normalize_glyphs_url(
            template, api_url=self._api_url, access_token=self._access_token
        )

        stacks: Mapping[str, Iterable[int]] = params.get("stacks", {})
        result: dict[str, dict[int, bytes]] = {}
        for fontstack, codepoints in stacks.items():
            starts = glyph_range_starts(codepoints)
            payloads = await asyncio.gather(
                *(self._glyph_range(url_template, fontstack, start) for start in starts)
            )
            result[fontstack] = dict(zip(starts, payloads))
        return result

    def _glyph_range(self, template: str, fontstack: str, start: int) -> asyncio.Task[bytes]:
        key = (fontstack, start)
        task = self._ranges.get(key)
        if task is None:
            url = glyph_range_url(template, fontstack=fontstack, start=start)
            task = asyncio.get_running_loop().create_task(self._fetch_range(url))
            self._ranges[key] = task
        return task

    async def _fetch_range(self, url: str) -> bytes:
        try:
            return await self._fetch(url)
        except httpx.HTTPError as exc:
            raise StyleError(f"Failed to load glyph range {url}: {exc}") from exc

    async def _images(self, params: Mapping[str, Any]) -> dict[str, StyleImage]:
        await self.load()
        images: dict[str, StyleImage] = {}
        for name in params.get("icons", []):
            entry = self._sprite_index.get(name)
            if entry is None or self._sprite_sheet is None:
                logger.warning(f"Image '{name}' could not be found in the sprite")
                continue
            x, y = entry["x"], entry["y"]
            width, height = entry["width"], entry["height"]
            crop = self._sprite_sheet.crop((x, y, x + width, y + height))
            images[name] = StyleImage(
                width=width,
                height=height,
                pixel_ratio=entry.get("pixelRatio", 1),
                sdf=bool(entry.get("sdf", False)),
                data=crop.tobytes(),
            )
        return images
