"""
Note-to-Pad Mapping

Resolves which pad a MIDI note triggers. Two sources are consulted in order:

1. A custom GridMapping table ("row,col" cell -> voice), when supplied
2. The algorithmic 64-pad drum layout: consecutive notes fill each row
   left to right, starting from the bottom-left pad

Usage:
    from padfinger.grid.mapping import NotePositionResolver

    resolver = NotePositionResolver(instrument, grid_mapping)
    pos = resolver.resolve(36)   # GridPosition(0, 0) or None if unmapped
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .geometry import GridPosition
from ..utils.config import InstrumentConfig


def cell_key(row: int, col: int) -> str:
    """Create a "row,col" cell key."""
    return f"{row},{col}"


def parse_cell_key(key: str) -> Optional[Tuple[int, int]]:
    """
    Parse a "row,col" cell key.

    Returns:
        (row, col) tuple, or None if the key is malformed
    """
    parts = key.split(',')
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


@dataclass
class Voice:
    """A sound assigned to a pad."""
    name: str
    original_midi_note: Optional[int] = None
    color: str = ""


@dataclass
class GridMapping:
    """
    Custom pad layout.

    Attributes:
        id: Unique identifier
        name: Display name
        cells: "row,col" key -> Voice
        finger_constraints: "row,col" key -> finger label (e.g. "L1", "R5")
    """
    id: str = "custom"
    name: str = "Custom Mapping"
    cells: Dict[str, Voice] = field(default_factory=dict)
    finger_constraints: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GridMapping':
        """
        Build a mapping from a plain dictionary.

        Cells may be given either as voice dicts or directly as MIDI
        note numbers: {"0,0": 36} or {"0,0": {"name": "Kick", "original_midi_note": 36}}.
        """
        cells: Dict[str, Voice] = {}
        for key, value in data.get('cells', {}).items():
            if parse_cell_key(key) is None:
                raise ValueError(f"Invalid cell key: {key!r} (expected 'row,col')")
            if isinstance(value, dict):
                cells[key] = Voice(
                    name=value.get('name', key),
                    original_midi_note=value.get('original_midi_note'),
                    color=value.get('color', "")
                )
            else:
                cells[key] = Voice(name=str(value), original_midi_note=int(value))
        return cls(
            id=data.get('id', 'custom'),
            name=data.get('name', 'Custom Mapping'),
            cells=cells,
            finger_constraints=dict(data.get('finger_constraints', {}))
        )

    @classmethod
    def from_note_table(cls, table: Dict[int, Tuple[int, int]]) -> 'GridMapping':
        """Build a mapping from {midi_note: (row, col)}."""
        cells = {
            cell_key(row, col): Voice(name=str(note), original_midi_note=note)
            for note, (row, col) in table.items()
        }
        return cls(cells=cells)

    def copy(self) -> 'GridMapping':
        return GridMapping(
            id=self.id,
            name=self.name,
            cells=dict(self.cells),
            finger_constraints=dict(self.finger_constraints)
        )

    def occupied_pads(self) -> List[Tuple[int, int]]:
        """Pads holding a voice, in cell insertion order."""
        pads = []
        for key in self.cells:
            parsed = parse_cell_key(key)
            if parsed is not None:
                pads.append(parsed)
        return pads

    def empty_pads(self, instrument: InstrumentConfig) -> List[Tuple[int, int]]:
        """Pads of the instrument grid without a voice, row by row."""
        return [
            (row, col)
            for row in range(instrument.rows)
            for col in range(instrument.cols)
            if cell_key(row, col) not in self.cells
        ]

    def position_for_note(self, note_number: int) -> Optional[GridPosition]:
        """Find the pad holding a voice for this note, if any."""
        for key, voice in self.cells.items():
            if voice.original_midi_note == note_number:
                parsed = parse_cell_key(key)
                if parsed is not None:
                    return GridPosition(row=parsed[0], col=parsed[1])
        return None


class GridMapService:
    """
    Stateless note <-> pad conversion for the 64-pad drum layout.
    """

    @staticmethod
    def note_to_grid(note_number: int, instrument: InstrumentConfig) -> Optional[Tuple[int, int]]:
        """
        Pad (row, col) for a MIDI note.

        Returns:
            (row, col), or None when the note falls outside the grid window
        """
        offset = note_number - instrument.bottom_left_note
        if offset < 0:
            return None

        row = offset // instrument.cols
        col = offset % instrument.cols
        if row >= instrument.rows:
            return None

        return row, col

    @staticmethod
    def note_for_position(row: int, col: int, instrument: InstrumentConfig) -> int:
        """MIDI note triggered by the pad at (row, col)."""
        return instrument.bottom_left_note + row * instrument.cols + col


class NotePositionResolver:
    """
    Resolves note numbers to grid positions.

    A custom GridMapping takes precedence over the algorithmic layout.
    Lookups are cached per resolver; create a new resolver when the
    mapping changes.
    """

    def __init__(
        self,
        instrument: InstrumentConfig,
        grid_mapping: Optional[GridMapping] = None
    ):
        self.instrument = instrument
        self.grid_mapping = grid_mapping
        self._cache: Dict[int, Optional[GridPosition]] = {}

    def resolve(self, note_number: int) -> Optional[GridPosition]:
        """
        Grid position for a note, or None if the note is unmapped.
        """
        if note_number in self._cache:
            return self._cache[note_number]

        position = None
        if self.grid_mapping is not None:
            position = self.grid_mapping.position_for_note(note_number)

        if position is None:
            pad = GridMapService.note_to_grid(note_number, self.instrument)
            if pad is not None:
                position = GridPosition(row=pad[0], col=pad[1])

        self._cache[note_number] = position
        return position
