"""Tile coordinates used as benchmark fixtures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Identifies one map tile fixture."""

    zoom: int
    row: int
    column: int

    def __post_init__(self) -> None:
        if self.zoom < 0:
            raise ValueError("zoom must be >= 0")
        limit = 2**self.zoom
        if not (0 <= self.row < limit and 0 <= self.column < limit):
            raise ValueError(f"Tile {self} is outside the zoom {self.zoom} grid")

    @classmethod
    def parse(cls, value: str) -> Coordinate:
        """Parse ``"zoom/row/column"``."""
        parts = value.strip().split("/")
        if len(parts) != 3:
            raise ValueError(f"Expected zoom/row/column, got '{value}'")
        zoom, row, column = (int(part) for part in parts)
        return cls(zoom=zoom, row=row, column=column)

    def __str__(self) -> str:
        return f"{self.zoom}/{self.row}/{self.column}"


# Spread over zoom levels so sparse and dense tiles are both sampled.
DEFAULT_COORDINATES: Final[tuple[Coordinate, ...]] = (
    Coordinate(zoom=0, row=0, column=0),
    Coordinate(zoom=5, row=9, column=12),
    Coordinate(zoom=8, row=75, column=96),
    Coordinate(zoom=11, row=602, column=769),
    Coordinate(zoom=12, row=1171, column=1566),
    Coordinate(zoom=14, row=4685, column=6264),
    Coordinate(zoom=15, row=9371, column=12529),
    Coordinate(zoom=16, row=18743, column=25063),
)
