"""Pad grid geometry and note-to-pad mapping."""

from .geometry import GridPosition, distance
from .mapping import (
    GridMapping,
    GridMapService,
    NotePositionResolver,
    Voice,
    cell_key,
    parse_cell_key,
)
from .mutation import move_pad, random_mutation, swap_pads

__all__ = [
    "GridPosition",
    "distance",
    "GridMapping",
    "GridMapService",
    "NotePositionResolver",
    "Voice",
    "cell_key",
    "parse_cell_key",
    "move_pad",
    "random_mutation",
    "swap_pads",
]
