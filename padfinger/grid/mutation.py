"""
Layout Mutations

Random edits to a GridMapping for layout search. Every mutation returns a
new mapping and leaves its input untouched. Finger constraints travel
with the voice they belong to.

Usage:
    rng = np.random.default_rng(42)
    candidate = random_mutation(mapping, instrument, rng)
"""

from typing import Tuple

import numpy as np

from .mapping import GridMapping, cell_key
from ..utils.config import InstrumentConfig

Pad = Tuple[int, int]


def swap_pads(mapping: GridMapping, a: Pad, b: Pad) -> GridMapping:
    """Exchange the voices (and finger constraints) of two occupied pads."""
    key_a, key_b = cell_key(*a), cell_key(*b)
    if key_a not in mapping.cells or key_b not in mapping.cells:
        return mapping.copy()

    result = mapping.copy()
    result.cells[key_a], result.cells[key_b] = mapping.cells[key_b], mapping.cells[key_a]

    result.finger_constraints.pop(key_a, None)
    result.finger_constraints.pop(key_b, None)
    if key_a in mapping.finger_constraints:
        result.finger_constraints[key_b] = mapping.finger_constraints[key_a]
    if key_b in mapping.finger_constraints:
        result.finger_constraints[key_a] = mapping.finger_constraints[key_b]
    return result


def move_pad(mapping: GridMapping, source: Pad, target: Pad) -> GridMapping:
    """Move the voice on an occupied pad to an empty one."""
    source_key, target_key = cell_key(*source), cell_key(*target)
    if source_key not in mapping.cells or target_key in mapping.cells:
        return mapping.copy()

    result = mapping.copy()
    result.cells[target_key] = result.cells.pop(source_key)

    result.finger_constraints.pop(target_key, None)
    constraint = result.finger_constraints.pop(source_key, None)
    if constraint is not None:
        result.finger_constraints[target_key] = constraint
    return result


def random_mutation(
    mapping: GridMapping,
    instrument: InstrumentConfig,
    rng: np.random.Generator
) -> GridMapping:
    """
    Swap two voices or move one to an empty pad, with equal odds.

    Falls back to the other operation when the chosen one is impossible;
    returns an unchanged copy when neither is.
    """
    occupied = mapping.occupied_pads()
    empty = mapping.empty_pads(instrument)
    if not occupied:
        return mapping.copy()

    use_swap = rng.random() < 0.5
    if (use_swap or not empty) and len(occupied) >= 2:
        first, second = rng.choice(len(occupied), size=2, replace=False)
        return swap_pads(mapping, occupied[int(first)], occupied[int(second)])

    if empty:
        source = occupied[int(rng.integers(len(occupied)))]
        target = empty[int(rng.integers(len(empty)))]
        return move_pad(mapping, source, target)

    return mapping.copy()
