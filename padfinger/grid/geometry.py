"""
Grid Geometry

Coordinates on the pad surface and the distance between them.
Row 0 is the bottom row, column 0 is the left column. Coordinates are
real-valued because hand centroids fall between pads.

Usage:
    from padfinger.grid.geometry import GridPosition, distance

    d = distance(GridPosition(0, 0), GridPosition(3, 4))  # 5.0
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class GridPosition:
    """(row, col) coordinate on the pad grid."""
    row: float
    col: float

    @classmethod
    def from_tuple(cls, value: Tuple[float, float]) -> 'GridPosition':
        """Create a position from a (row, col) pair."""
        row, col = value
        return cls(row=float(row), col=float(col))

    def to_tuple(self) -> Tuple[float, float]:
        return (self.row, self.col)

    @property
    def pad_id(self) -> str:
        """Pad identifier in "row,col" format (integer pads only)."""
        return f"{int(self.row)},{int(self.col)}"


def distance(a: GridPosition, b: GridPosition) -> float:
    """
    Euclidean distance between two grid positions.

    Args:
        a: Starting position
        b: Ending position

    Returns:
        sqrt((a.row - b.row)^2 + (a.col - b.col)^2)
    """
    row_diff = b.row - a.row
    col_diff = b.col - a.col
    return math.sqrt(row_diff * row_diff + col_diff * col_diff)


def mean_position(positions) -> GridPosition:
    """Arithmetic mean of a non-empty collection of positions."""
    positions = list(positions)
    n = len(positions)
    return GridPosition(
        row=sum(p.row for p in positions) / n,
        col=sum(p.col for p in positions) / n
    )
