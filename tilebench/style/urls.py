"""Resolution of ``mapbox://`` resource URLs against the API endpoint."""

from __future__ import annotations

from urllib.parse import quote

MAPBOX_SCHEME = "mapbox://"


class MissingAccessToken(ValueError):
    """An authenticated URL was requested without an access token."""


def _is_mapbox(url: str) -> bool:
    return url.startswith(MAPBOX_SCHEME)


def with_access_token(url: str, access_token: str | None) -> str:
    if not access_token:
        raise MissingAccessToken(
            "An access token is required; set MAPBOX_ACCESS_TOKEN."
        )
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}access_token={access_token}"


def normalize_glyphs_url(
    template: str, *, api_url: str, access_token: str | None
) -> str:
    """Turn a style's ``glyphs`` template into an HTTP template.

    The ``{fontstack}`` and ``{range}`` placeholders are left in place.
    """
    if not _is_mapbox(template):
        return template
    path = template[len(MAPBOX_SCHEME) :]
    if not path.startswith("fonts/"):
        raise ValueError(f"Unsupported glyphs URL: {template}")
    resolved = f"{api_url.rstrip('/')}/fonts/v1/{path[len('fonts/'):]}"
    return with_access_token(resolved, access_token)


def normalize_sprite_url(
    url: str, *, api_url: str, access_token: str | None, extension: str
) -> str:
    """Return the URL of a sprite resource (``.json`` or ``.png``)."""
    if not _is_mapbox(url):
        return f"{url}{extension}"
    path = url[len(MAPBOX_SCHEME) :]
    if not path.startswith("sprites/"):
        raise ValueError(f"Unsupported sprite URL: {url}")
    style_path = path[len("sprites/") :]
    resolved = f"{api_url.rstrip('/')}/styles/v1/{style_path}/sprite{extension}"
    return with_access_token(resolved, access_token)


def glyph_range_url(template: str, *, fontstack: str, start: int) -> str:
    end = start + 255
    return template.replace("{fontstack}", quote(fontstack)).replace(
        "{range}", f"{start}-{end}"
    )
