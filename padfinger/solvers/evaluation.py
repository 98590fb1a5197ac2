"""
Shared Solve Machinery

Everything the strategies have in common:

- prepare_events: stable time sort, pad lookup and instant grouping
- SolveState: the two live hand snapshots, bounce memo and the set of
  fingers already striking in the current instant
- AssignmentEvaluator: replays a complete choice sequence through the
  same hand model and cost function, optionally repairing infeasible
  choices, so every strategy produces comparable, invariant-safe results

Usage:
    from padfinger.solvers.evaluation import AssignmentEvaluator, prepare_events

    events = prepare_events(performance, resolver)
    evaluator = AssignmentEvaluator(engine_config, instrument.cols / 2)
    evaluation = evaluator.evaluate(events, choices)
"""

import math
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from ..cost.bounce import BounceMemo
from ..cost.cost_function import TERM_NAMES, CostBreakdown, CostModel
from ..grid.geometry import GridPosition, distance
from ..grid.mapping import GridMapping, NotePositionResolver, parse_cell_key
from ..hand.feasibility import check_candidate
from ..hand.models import FINGER_ORDER, FingerType, HandSide, HandState, parse_finger_label
from ..utils.config import EngineConfig
from ..utils.logging_utils import get_logger
from .types import (
    UNPLAYABLE,
    Choice,
    Difficulty,
    EngineDebugEvent,
    ManualAssignment,
    NoteEvent,
    Performance,
    difficulty_for_cost,
)

logger = get_logger(__name__)

# Events closer together than this (seconds) form one instant
TIME_EPSILON = 1e-3

ALL_CHOICES: Tuple[Tuple[HandSide, FingerType], ...] = tuple(
    (hand, finger) for hand in HandSide for finger in FINGER_ORDER
)


@dataclass(frozen=True)
class PreparedEvent:
    """A note event after sorting and pad lookup."""
    event_index: int
    event: NoteEvent
    position: Optional[GridPosition]
    instant: int

    @property
    def note_number(self) -> int:
        return self.event.note_number

    @property
    def start_time(self) -> float:
        return self.event.start_time


def prepare_events(
    performance: Performance,
    resolver: NotePositionResolver
) -> List[PreparedEvent]:
    """
    Sort a performance by start time (stable) and resolve each pad.

    Consecutive events within TIME_EPSILON of the first event of their
    group share an instant id.
    """
    prepared = []
    instant = -1
    instant_start = None

    for index, event in performance.sorted_events():
        if instant_start is None or event.start_time - instant_start > TIME_EPSILON:
            instant += 1
            instant_start = event.start_time
        position = resolver.resolve(event.note_number)
        if position is None:
            logger.debug(f"Note {event.note_number} (event {index}) is not mapped to a pad")
        prepared.append(PreparedEvent(
            event_index=index,
            event=event,
            position=position,
            instant=instant
        ))

    return prepared


# instant id -> hand -> fingers forced by manual assignments in that instant
Reservations = Dict[int, Dict[HandSide, FrozenSet[FingerType]]]

# (row, col) -> (hand, finger) required by the mapping's finger constraints
PadPins = Dict[Tuple[int, int], Tuple[HandSide, FingerType]]


def reserved_choices(
    events: Sequence[PreparedEvent],
    manual: Dict[int, ManualAssignment]
) -> Reservations:
    """
    Fingers each instant must keep free for its manual assignments.

    Free events in the same instant are never given these fingers, so a
    forced choice only fails when it collides with another forced choice.
    """
    reserved: Dict[int, Dict[HandSide, set]] = {}
    for prepared in events:
        override = manual.get(prepared.event_index)
        if override is None or prepared.position is None:
            continue
        hands = reserved.setdefault(prepared.instant, {})
        hands.setdefault(override.hand, set()).add(override.finger)

    return {
        instant: {hand: frozenset(fingers) for hand, fingers in hands.items()}
        for instant, hands in reserved.items()
    }


def pinned_fingers(grid_mapping: Optional[GridMapping]) -> PadPins:
    """Parse a mapping's finger constraints; malformed entries are skipped."""
    if grid_mapping is None:
        return {}

    pins: PadPins = {}
    for key, label in grid_mapping.finger_constraints.items():
        pad = parse_cell_key(key)
        choice = parse_finger_label(label)
        if pad is None or choice is None:
            logger.warning(f"Ignoring finger constraint {key!r}: {label!r}")
            continue
        pins[pad] = choice
    return pins


def playable_event(
    prepared: PreparedEvent,
    hand: HandSide,
    finger: FingerType,
    breakdown: CostBreakdown,
    cost: float,
    centroid_drift: float
) -> EngineDebugEvent:
    position = prepared.position
    return EngineDebugEvent(
        note_number=prepared.note_number,
        start_time=prepared.start_time,
        assigned_hand=hand,
        finger=finger,
        cost=cost,
        difficulty=difficulty_for_cost(cost),
        event_index=prepared.event_index,
        cost_breakdown=breakdown,
        row=int(position.row),
        col=int(position.col),
        pad_id=position.pad_id,
        centroid_drift=centroid_drift
    )


def unplayable_event(prepared: PreparedEvent) -> EngineDebugEvent:
    position = prepared.position
    return EngineDebugEvent(
        note_number=prepared.note_number,
        start_time=prepared.start_time,
        assigned_hand=UNPLAYABLE,
        finger=None,
        cost=math.inf,
        difficulty=Difficulty.UNPLAYABLE,
        event_index=prepared.event_index,
        row=int(position.row) if position is not None else None,
        col=int(position.col) if position is not None else None,
        pad_id=position.pad_id if position is not None else None
    )


class SolveState:
    """
    Mutable bookkeeping for one pass over the events.

    Hand snapshots themselves are immutable; committing a choice swaps in
    the new snapshot. copy() is cheap, which beam search relies on.

    Args:
        config: Engine configuration
        cost_model: Cost function bound to the configuration
        split_col: Column dividing the left and right halves of the grid
        reservations: Fingers held back for manual assignments, per instant
        pins: Pads whose finger constraint limits the candidates
    """

    def __init__(
        self,
        config: EngineConfig,
        cost_model: CostModel,
        split_col: float,
        reservations: Optional[Reservations] = None,
        pins: Optional[PadPins] = None
    ):
        self.config = config
        self.cost_model = cost_model
        self.split_col = split_col
        self.reservations = reservations or {}
        self.pins = pins or {}
        self.reserved: Dict[HandSide, FrozenSet[FingerType]] = {}
        self.hands: Dict[HandSide, HandState] = {
            HandSide.LEFT: HandState.initial(
                HandSide.LEFT, GridPosition.from_tuple(config.left_home)
            ),
            HandSide.RIGHT: HandState.initial(
                HandSide.RIGHT, GridPosition.from_tuple(config.right_home)
            ),
        }
        self.memo = BounceMemo()
        self.last_time: Optional[float] = None
        self.instant = -1
        self.used: Dict[HandSide, set] = {HandSide.LEFT: set(), HandSide.RIGHT: set()}

    def copy(self) -> 'SolveState':
        clone = SolveState.__new__(SolveState)
        clone.config = self.config
        clone.cost_model = self.cost_model
        clone.split_col = self.split_col
        clone.reservations = self.reservations
        clone.pins = self.pins
        clone.reserved = self.reserved
        clone.hands = dict(self.hands)
        clone.memo = self.memo.copy()
        clone.last_time = self.last_time
        clone.instant = self.instant
        clone.used = {side: set(fingers) for side, fingers in self.used.items()}
        return clone

    def hand(self, side: HandSide) -> HandState:
        return self.hands[side]

    def other(self, side: HandSide) -> HandState:
        return self.hands[side.other]

    def advance(self, prepared: PreparedEvent):
        """Recover fatigue for the elapsed time and open a new instant if needed."""
        if self.last_time is not None:
            dt = max(0.0, prepared.start_time - self.last_time)
            amount = self.config.fatigue_recovery_rate * dt
            if amount > 0:
                self.hands = {side: state.decay(amount) for side, state in self.hands.items()}
        self.last_time = prepared.start_time

        if prepared.instant != self.instant:
            self.instant = prepared.instant
            self.used = {HandSide.LEFT: set(), HandSide.RIGHT: set()}
            self.reserved = self.reservations.get(prepared.instant, {})

    def hand_order(self, position: GridPosition) -> Tuple[HandSide, HandSide]:
        """Both hands, the one on the pad's side of the grid first."""
        if position.col < self.split_col:
            return (HandSide.LEFT, HandSide.RIGHT)
        return (HandSide.RIGHT, HandSide.LEFT)

    def is_feasible(self, position: GridPosition, hand: HandSide, finger: FingerType) -> bool:
        """Whether a free (non-manual) event may use this finger."""
        if finger in self.reserved.get(hand, ()):
            return False
        ok, _ = check_candidate(
            self.hands[hand], finger, position, self.config, self.used[hand]
        )
        return ok

    def pinned(self, position: GridPosition) -> Optional[Tuple[HandSide, FingerType]]:
        """The pad's constrained finger, when it can strike right now."""
        pin = self.pins.get((int(position.row), int(position.col)))
        if pin is not None and self.is_feasible(position, *pin):
            return pin
        return None

    def options(self, position: GridPosition) -> List[Tuple[HandSide, FingerType]]:
        """
        Feasible (hand, finger) pairs in enumeration order.

        A pad with a feasible finger constraint offers only that finger.
        """
        pin = self.pinned(position)
        if pin is not None:
            return [pin]
        return [
            (hand, finger)
            for hand in self.hand_order(position)
            for finger in FINGER_ORDER
            if self.is_feasible(position, hand, finger)
        ]

    def score(self, prepared: PreparedEvent, hand: HandSide, finger: FingerType) -> CostBreakdown:
        return self.cost_model.evaluate(
            self.hands[hand], self.other(hand), finger, prepared.position,
            prepared.note_number, prepared.start_time, self.memo
        )

    def commit(self, prepared: PreparedEvent, hand: HandSide, finger: FingerType) -> float:
        """
        Apply a choice: place the finger, add fatigue, record the bounce memo.

        Returns:
            Distance of the hand centroid from home after the strike
        """
        state = self.hands[hand].place(
            finger, prepared.position, self.config.weights.fatigue_increment
        )
        self.hands[hand] = state
        self.used[hand].add(finger)
        self.memo.record(prepared.note_number, hand, finger, prepared.start_time)
        return distance(state.centroid, state.home)


@dataclass
class Evaluation:
    """Outcome of replaying one choice sequence."""
    total_cost: float
    choices: List[Choice]
    debug_events: List[EngineDebugEvent]
    state: SolveState
    term_sums: Dict[str, float] = field(default_factory=dict)

    @property
    def unplayable_count(self) -> int:
        return sum(1 for e in self.debug_events if not e.is_playable)


class AssignmentEvaluator:
    """
    Replays choice sequences through the hand model and cost function.

    Args:
        config: Engine configuration
        split_col: Column dividing the left and right halves of the grid
        repair: Replace infeasible choices with the cheapest feasible one
        pins: Pads whose finger constraint limits the candidates
    """

    def __init__(
        self,
        config: EngineConfig,
        split_col: float,
        repair: bool = True,
        pins: Optional[PadPins] = None
    ):
        self.config = config
        self.split_col = split_col
        self.repair = repair
        self.pins = pins or {}
        self.cost_model = CostModel(config)

    def new_state(self, reservations: Optional[Reservations] = None) -> SolveState:
        return SolveState(
            self.config, self.cost_model, self.split_col, reservations, self.pins
        )

    def cheapest_option(
        self,
        state: SolveState,
        prepared: PreparedEvent
    ) -> Optional[Tuple[HandSide, FingerType, CostBreakdown]]:
        """Lowest-cost feasible choice; ties go to the first enumerated."""
        best = None
        for hand, finger in state.options(prepared.position):
            breakdown = state.score(prepared, hand, finger)
            if best is None or breakdown.total < best[2].total:
                best = (hand, finger, breakdown)
        return best

    def evaluate(
        self,
        events: Sequence[PreparedEvent],
        choices: Sequence[Choice],
        manual: Optional[Dict[int, ManualAssignment]] = None
    ) -> Evaluation:
        """
        Replay choices (one per prepared event, same order).

        Manual assignments override the supplied choice. Unplayable events
        add the configured unplayable penalty to the total cost.
        """
        if len(choices) != len(events):
            raise ValueError(f"Expected {len(events)} choices, got {len(choices)}")

        manual = manual or {}
        penalty = self.config.weights.unplayable_penalty
        state = self.new_state(reserved_choices(events, manual))
        debug_events = []
        final_choices: List[Choice] = []
        term_sums = {name: 0.0 for name in TERM_NAMES}
        total_cost = 0.0

        for prepared, choice in zip(events, choices):
            state.advance(prepared)

            if prepared.position is None:
                debug_events.append(unplayable_event(prepared))
                final_choices.append(None)
                total_cost += penalty
                continue

            override = manual.get(prepared.event_index)
            resolved = None
            if override is not None:
                if override.finger in state.used[override.hand]:
                    logger.debug(
                        f"Manual assignment for event {prepared.event_index} reuses "
                        f"{override.hand.value} {override.finger.value} in one instant"
                    )
                else:
                    resolved = (override.hand, override.finger,
                                state.score(prepared, override.hand, override.finger))
            elif choice is not None and tuple(choice) in state.options(prepared.position):
                resolved = (choice[0], choice[1], state.score(prepared, *choice))
            elif self.repair:
                resolved = self.cheapest_option(state, prepared)

            if resolved is None:
                debug_events.append(unplayable_event(prepared))
                final_choices.append(None)
                total_cost += penalty
                continue

            hand, finger, breakdown = resolved
            drift = state.commit(prepared, hand, finger)
            debug_events.append(
                playable_event(prepared, hand, finger, breakdown, breakdown.total, drift)
            )
            final_choices.append((hand, finger))
            total_cost += breakdown.total
            for name in TERM_NAMES:
                term_sums[name] += getattr(breakdown, name)

        return Evaluation(
            total_cost=total_cost,
            choices=final_choices,
            debug_events=debug_events,
            state=state,
            term_sums=term_sums
        )
