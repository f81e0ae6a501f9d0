"""
Configuration management for tilebench.

Provides explicit configuration for fixture endpoints, credentials, sampling
and the tile worker parameters through environment variables and defaults.
Configuration objects are always passed to the components that need them;
there is no process-wide instance.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_STYLE_URL = "https://api.mapbox.com/styles/v1/mapbox/streets-v9"
DEFAULT_TILE_URL = (
    "https://a.tiles.mapbox.com/v4/"
    "mapbox.mapbox-terrain-v2,mapbox.mapbox-streets-v6/"
    "{zoom}/{row}/{column}.vector.pbf"
)
DEFAULT_API_URL = "https://api.mapbox.com"
DEFAULT_SAMPLE_COUNT = 10


@dataclass(frozen=True)
class WorkerTileConfig:
    """Static parameters handed to the tile worker for every parse."""

    source: str = "composite"
    uid: str = "0"


@dataclass
class BenchConfig:
    """Main configuration for a benchmark session."""

    # Credentials appended to every fixture request
    access_token: str | None = None

    # Fixture endpoints
    style_url: str = DEFAULT_STYLE_URL
    tile_url: str = DEFAULT_TILE_URL
    api_url: str = DEFAULT_API_URL
    timeout: float = 30.0

    # Sampling
    sample_count: int = DEFAULT_SAMPLE_COUNT

    worker: WorkerTileConfig = field(default_factory=WorkerTileConfig)

    def __post_init__(self) -> None:
        if self.sample_count < 0:
            raise ValueError("sample_count must be >= 0")

    @classmethod
    def from_env(cls) -> BenchConfig:
        """Create configuration from environment variables."""
        return cls(
            access_token=(
                os.environ.get("MAPBOX_ACCESS_TOKEN")
                or os.environ.get("MapboxAccessToken")
            ),
            style_url=os.environ.get("TILEBENCH_STYLE_URL", DEFAULT_STYLE_URL),
            tile_url=os.environ.get("TILEBENCH_TILE_URL", DEFAULT_TILE_URL),
            api_url=os.environ.get("TILEBENCH_API_URL", DEFAULT_API_URL),
            timeout=float(os.environ.get("TILEBENCH_TIMEOUT", "30")),
            sample_count=int(
                os.environ.get("TILEBENCH_SAMPLE_COUNT", str(DEFAULT_SAMPLE_COUNT))
            ),
        )
