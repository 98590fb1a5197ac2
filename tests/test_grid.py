"""Tests for grid geometry and note-to-pad mapping."""

import numpy as np
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from padfinger.grid.geometry import GridPosition, distance, mean_position
from padfinger.grid.mapping import (
    GridMapping,
    GridMapService,
    NotePositionResolver,
    cell_key,
    parse_cell_key,
)
from padfinger.grid.mutation import move_pad, random_mutation, swap_pads
from padfinger.utils.config import InstrumentConfig


class TestGeometry:
    """Tests for GridPosition and distance."""

    def test_distance_pythagorean(self):
        """Test 3-4-5 triangle."""
        assert distance(GridPosition(0, 0), GridPosition(3, 4)) == 5.0

    def test_distance_symmetric(self):
        """Test distance does not depend on direction."""
        a, b = GridPosition(1, 7), GridPosition(6, 2)
        assert distance(a, b) == distance(b, a)

    def test_distance_to_self(self):
        """Test zero distance to the same pad."""
        assert distance(GridPosition(2.5, 3.5), GridPosition(2.5, 3.5)) == 0.0

    def test_mean_position(self):
        """Test centroid of several positions."""
        centroid = mean_position([GridPosition(0, 0), GridPosition(2, 4)])
        assert centroid == GridPosition(1.0, 2.0)

    def test_pad_id(self):
        """Test pad identifier format."""
        assert GridPosition(3, 5).pad_id == "3,5"

    def test_from_tuple(self):
        """Test construction from a pair."""
        pos = GridPosition.from_tuple((2, 1.5))
        assert pos.row == 2.0
        assert pos.col == 1.5
        assert pos.to_tuple() == (2.0, 1.5)


class TestGridMapService:
    """Tests for the algorithmic 64-pad layout."""

    @pytest.fixture
    def instrument(self):
        return InstrumentConfig()

    def test_bottom_left(self, instrument):
        """Test the bottom-left note maps to (0, 0)."""
        assert GridMapService.note_to_grid(36, instrument) == (0, 0)

    def test_row_wrap(self, instrument):
        """Test notes fill a row before moving up."""
        assert GridMapService.note_to_grid(43, instrument) == (0, 7)
        assert GridMapService.note_to_grid(44, instrument) == (1, 0)

    def test_top_right(self, instrument):
        """Test the last pad."""
        assert GridMapService.note_to_grid(99, instrument) == (7, 7)

    def test_out_of_range(self, instrument):
        """Test notes outside the grid window are unmapped."""
        assert GridMapService.note_to_grid(35, instrument) is None
        assert GridMapService.note_to_grid(100, instrument) is None

    def test_note_for_position_inverse(self, instrument):
        """Test note_for_position inverts note_to_grid."""
        for note in (36, 45, 60, 99):
            row, col = GridMapService.note_to_grid(note, instrument)
            assert GridMapService.note_for_position(row, col, instrument) == note

    def test_custom_instrument(self):
        """Test a smaller grid with a different base note."""
        small = InstrumentConfig(rows=4, cols=4, bottom_left_note=48)
        assert GridMapService.note_to_grid(53, small) == (1, 1)
        assert GridMapService.note_to_grid(64, small) is None


class TestGridMapping:
    """Tests for custom mappings and cell keys."""

    def test_cell_keys(self):
        """Test cell key creation and parsing."""
        assert cell_key(2, 3) == "2,3"
        assert parse_cell_key("2,3") == (2, 3)
        assert parse_cell_key("a,b") is None
        assert parse_cell_key("1,2,3") is None

    def test_from_dict_plain_notes(self):
        """Test cells given as note numbers."""
        mapping = GridMapping.from_dict({"cells": {"4,4": 60}})
        assert mapping.position_for_note(60) == GridPosition(4, 4)
        assert mapping.position_for_note(61) is None

    def test_from_dict_voices(self):
        """Test cells given as voice dictionaries."""
        mapping = GridMapping.from_dict({
            "name": "Kit",
            "cells": {"1,2": {"name": "Snare", "original_midi_note": 38}}
        })
        assert mapping.name == "Kit"
        assert mapping.cells["1,2"].name == "Snare"
        assert mapping.position_for_note(38) == GridPosition(1, 2)

    def test_from_dict_invalid_key(self):
        """Test malformed cell keys are rejected."""
        with pytest.raises(ValueError):
            GridMapping.from_dict({"cells": {"top-left": 36}})


class TestNotePositionResolver:
    """Tests for mapping precedence."""

    def test_algorithmic_fallback(self):
        """Test resolution without a custom mapping."""
        resolver = NotePositionResolver(InstrumentConfig())
        assert resolver.resolve(36) == GridPosition(0, 0)
        assert resolver.resolve(10) is None

    def test_custom_mapping_takes_precedence(self):
        """Test explicit cells override the algorithmic layout."""
        mapping = GridMapping.from_note_table({36: (5, 5)})
        resolver = NotePositionResolver(InstrumentConfig(), mapping)
        assert resolver.resolve(36) == GridPosition(5, 5)
        # Unlisted notes still use the algorithmic layout
        assert resolver.resolve(37) == GridPosition(0, 1)

    def test_custom_mapping_maps_out_of_range_note(self):
        """Test a note outside the grid window can be placed explicitly."""
        mapping = GridMapping.from_note_table({20: (0, 0)})
        resolver = NotePositionResolver(InstrumentConfig(), mapping)
        assert resolver.resolve(20) == GridPosition(0, 0)


class TestLayoutMutation:
    """Tests for swap, move and random layout mutations."""

    @pytest.fixture
    def mapping(self):
        mapping = GridMapping.from_note_table({36: (0, 0), 37: (0, 1)})
        mapping.finger_constraints = {"0,0": "L2"}
        return mapping

    def test_occupied_and_empty_pads(self, mapping):
        """Test pad bookkeeping over the 8x8 grid."""
        assert mapping.occupied_pads() == [(0, 0), (0, 1)]
        empty = mapping.empty_pads(InstrumentConfig())
        assert len(empty) == 62
        assert (0, 0) not in empty

    def test_swap_carries_constraints(self, mapping):
        """Test a swap exchanges voices and moves the constraint with its voice."""
        swapped = swap_pads(mapping, (0, 0), (0, 1))
        assert swapped.cells["0,1"].original_midi_note == 36
        assert swapped.cells["0,0"].original_midi_note == 37
        assert swapped.finger_constraints == {"0,1": "L2"}
        assert mapping.cells["0,0"].original_midi_note == 36
        assert mapping.finger_constraints == {"0,0": "L2"}

    def test_move_to_empty_pad(self, mapping):
        """Test a move vacates the source pad."""
        moved = move_pad(mapping, (0, 0), (3, 3))
        assert "0,0" not in moved.cells
        assert moved.cells["3,3"].original_midi_note == 36
        assert moved.finger_constraints == {"3,3": "L2"}
        assert NotePositionResolver(InstrumentConfig(), moved).resolve(36) == GridPosition(3, 3)

    def test_move_onto_occupied_pad_is_ignored(self, mapping):
        """Test moving onto a voice leaves the layout unchanged."""
        moved = move_pad(mapping, (0, 0), (0, 1))
        assert moved == mapping
        assert moved is not mapping

    def test_random_mutation_keeps_voices(self, mapping):
        """Test random mutations never lose or duplicate a voice."""
        rng = np.random.default_rng(7)
        current = mapping
        for _ in range(20):
            current = random_mutation(current, InstrumentConfig(), rng)
            notes = sorted(v.original_midi_note for v in current.cells.values())
            assert notes == [36, 37]

    def test_random_mutation_seeded(self, mapping):
        """Test the same seed gives the same mutation."""
        a = random_mutation(mapping, InstrumentConfig(), np.random.default_rng(3))
        b = random_mutation(mapping, InstrumentConfig(), np.random.default_rng(3))
        assert a == b

    def test_empty_mapping_unchanged(self):
        """Test a layout without voices cannot mutate."""
        empty = GridMapping()
        assert random_mutation(empty, InstrumentConfig(), np.random.default_rng(0)) == empty


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
