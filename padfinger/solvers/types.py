"""
Solver Data Types

Inputs (NoteEvent, Performance, ManualAssignment) and outputs
(EngineDebugEvent, EngineResult plus the optimisation logs) shared by
every strategy.

Usage:
    from padfinger.solvers.types import Performance

    performance = Performance.from_dict({
        "name": "groove",
        "events": [{"note_number": 36, "start_time": 0.0}]
    })
"""

import math
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..cost.cost_function import CostBreakdown
from ..grid.mapping import GridMapping
from ..hand.models import FingerType, HandSide


UNPLAYABLE = "Unplayable"

# A solver's decision for one event: (hand, finger), or None for unplayable
Choice = Optional[Tuple[HandSide, FingerType]]


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    UNPLAYABLE = "Unplayable"


def difficulty_for_cost(cost: float) -> Difficulty:
    """
    Label an event by its cost.

    inf or > 100 is Unplayable, > 10 Hard, > 3 Medium, otherwise Easy.
    """
    if math.isinf(cost) or cost > 100:
        return Difficulty.UNPLAYABLE
    if cost > 10:
        return Difficulty.HARD
    if cost > 3:
        return Difficulty.MEDIUM
    return Difficulty.EASY


def compute_score(hard_count: int, unplayable_count: int) -> float:
    """Playability score: 100 - 5 per hard event - 20 per unplayable, clamped to [0, 100]."""
    return float(max(0, min(100, 100 - 5 * hard_count - 20 * unplayable_count)))


@dataclass(frozen=True)
class NoteEvent:
    """A single note trigger."""
    note_number: int
    start_time: float
    duration: Optional[float] = None
    velocity: Optional[int] = None
    channel: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NoteEvent':
        return cls(
            note_number=int(data['note_number']),
            start_time=float(data['start_time']),
            duration=data.get('duration'),
            velocity=data.get('velocity'),
            channel=data.get('channel')
        )


@dataclass
class Performance:
    """A named sequence of note events, not necessarily sorted."""
    events: List[NoteEvent] = field(default_factory=list)
    tempo: Optional[float] = None
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Performance':
        return cls(
            events=[NoteEvent.from_dict(e) for e in data.get('events', [])],
            tempo=data.get('tempo'),
            name=data.get('name', "")
        )

    def sorted_events(self) -> List[Tuple[int, NoteEvent]]:
        """(original_index, event) pairs in stable start-time order."""
        return sorted(enumerate(self.events), key=lambda item: item[1].start_time)

    def __len__(self) -> int:
        return len(self.events)


@dataclass(frozen=True)
class ManualAssignment:
    """Force (hand, finger) for the event at event_index (index into Performance.events)."""
    event_index: int
    hand: HandSide
    finger: FingerType

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ManualAssignment':
        return cls(
            event_index=int(data['event_index']),
            hand=HandSide(data['hand']),
            finger=FingerType(data['finger'])
        )


def index_manual_assignments(
    manual_assignments: Optional[Iterable[ManualAssignment]]
) -> Dict[int, ManualAssignment]:
    """Manual assignments keyed by event index; later entries win."""
    if not manual_assignments:
        return {}
    return {m.event_index: m for m in manual_assignments}


@dataclass
class EngineDebugEvent:
    """
    Per-event assignment record.

    Attributes:
        assigned_hand: HandSide, or UNPLAYABLE
        finger: Assigned finger, None iff unplayable
        cost: Total cost (inf when unplayable)
        cost_breakdown: Per-term cost, None when unplayable
        event_index: Index of the event in the input performance
        pad_id: "row,col" of the pad, None when the note is unmapped
        centroid_drift: Distance of the hand centroid from home after the strike
    """
    note_number: int
    start_time: float
    assigned_hand: Union[HandSide, str]
    finger: Optional[FingerType]
    cost: float
    difficulty: Difficulty
    event_index: int
    cost_breakdown: Optional[CostBreakdown] = None
    row: Optional[int] = None
    col: Optional[int] = None
    pad_id: Optional[str] = None
    centroid_drift: Optional[float] = None

    @property
    def is_playable(self) -> bool:
        return self.finger is not None

    @property
    def choice(self) -> Choice:
        if self.finger is None:
            return None
        return (HandSide(self.assigned_hand), self.finger)


@dataclass(frozen=True)
class EvolutionLogEntry:
    """Population cost statistics for one generation."""
    generation: int
    best_cost: float
    average_cost: float
    worst_cost: float


@dataclass(frozen=True)
class OptimizationLogEntry:
    """Compact annealing step record."""
    step: int
    temperature: float
    cost: float
    accepted: bool


@dataclass(frozen=True)
class AnnealingIterationSnapshot:
    """
    Detailed annealing step record.

    term_sums holds the per-term cost totals of the current solution,
    term_shares each term's fraction of their sum.
    """
    iteration: int
    temperature: float
    current_cost: float
    best_cost: float
    accepted: bool
    delta_cost: float
    acceptance_probability: float
    term_sums: Dict[str, float] = field(default_factory=dict)
    term_shares: Dict[str, float] = field(default_factory=dict)


@dataclass
class EngineResult:
    """Outcome of one solve."""
    score: float
    unplayable_count: int
    hard_count: int
    debug_events: List[EngineDebugEvent]
    finger_usage_stats: Dict[str, int]
    fatigue_map: Dict[str, float]
    average_drift: float
    average_metrics: CostBreakdown
    solver_name: str = ""
    evolution_log: Optional[List[EvolutionLogEntry]] = None
    annealing_trace: Optional[List[AnnealingIterationSnapshot]] = None
    optimization_log: Optional[List[OptimizationLogEntry]] = None
    # Layout found by layout annealing; None for every other solve
    best_mapping: Optional[GridMapping] = None

    @property
    def choices(self) -> List[Choice]:
        """Chosen (hand, finger) per debug event, in debug-event order."""
        return [e.choice for e in self.debug_events]
