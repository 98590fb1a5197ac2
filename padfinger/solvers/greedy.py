"""
Greedy Strategy Module - Cheapest feasible finger per event with one-step lookahead.
"""

from typing import Iterable, List, Optional, Tuple

from ..cost.cost_function import CostBreakdown
from ..hand.feasibility import check_candidate
from ..hand.models import FingerType, HandSide
from ..utils.config import EngineConfig
from ..utils.logging_utils import get_logger
from .base import SolverStrategy
from .evaluation import PreparedEvent, SolveState, playable_event, unplayable_event
from .types import (
    Choice,
    EngineDebugEvent,
    EngineResult,
    ManualAssignment,
    Performance,
    index_manual_assignments,
)

logger = get_logger(__name__)


class GreedyStrategy(SolverStrategy):
    """
    Greedy assignment with depth-1 lookahead.

    Algorithm:
        1. Sort events by start time (stable)
        2. For each event, recover fatigue for the elapsed time
        3. Enumerate feasible (hand, finger) candidates, the hand on the
           pad's side of the grid first
        4. Score each with the cost function plus a lookahead penalty for
           the same hand reaching the next event
        5. Commit the cheapest; ties go to the first enumerated

    Deterministic: the same input always yields the same assignment.
    """
    name = "greedy"
    description = "Cheapest feasible finger per event with one-step lookahead"
    is_synchronous = True

    async def solve(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> EngineResult:
        return self.solve_sync(performance, config, manual_assignments)

    def solve_sync(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> EngineResult:
        debug_events, state = self.assign(performance, config, manual_assignments)
        return self.build_result(debug_events, state)

    def assign(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> Tuple[List[EngineDebugEvent], SolveState]:
        """Run the greedy pass, returning per-event records and the final state."""
        events = self.prepare(performance)
        manual = index_manual_assignments(manual_assignments)
        state = self.new_state(config, events, manual)
        debug_events = []

        for i, prepared in enumerate(events):
            next_event = events[i + 1] if i + 1 < len(events) else None
            state.advance(prepared)

            if prepared.position is None:
                logger.debug(f"Event {prepared.event_index}: note {prepared.note_number} unmapped")
                debug_events.append(unplayable_event(prepared))
                continue

            override = manual.get(prepared.event_index)
            if override is not None:
                debug_events.append(self._apply_override(state, prepared, override))
                continue

            best: Optional[Tuple[HandSide, FingerType, CostBreakdown, float]] = None
            for hand, finger in state.options(prepared.position):
                breakdown = state.score(prepared, hand, finger)
                total = breakdown.total + self._lookahead(
                    state, prepared, hand, finger, next_event
                )
                if best is None or total < best[3]:
                    best = (hand, finger, breakdown, total)

            if best is None:
                logger.debug(
                    f"Event {prepared.event_index}: no feasible finger for note "
                    f"{prepared.note_number} at {prepared.position.pad_id}"
                )
                debug_events.append(unplayable_event(prepared))
                continue

            hand, finger, breakdown, total = best
            drift = state.commit(prepared, hand, finger)
            logger.debug(
                f"Event {prepared.event_index}: note {prepared.note_number} -> "
                f"{hand.value} {finger.value} (cost={total:.2f})"
            )
            debug_events.append(playable_event(prepared, hand, finger, breakdown, total, drift))

        return debug_events, state

    def initial_choices(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> List[Choice]:
        """Greedy choice per event in time order; the seed for the search strategies."""
        debug_events, _ = self.assign(performance, config, manual_assignments)
        return [e.choice for e in debug_events]

    def _lookahead(
        self,
        state: SolveState,
        prepared: PreparedEvent,
        hand: HandSide,
        finger: FingerType,
        next_event: Optional[PreparedEvent]
    ) -> float:
        """Penalty for the same hand reaching the next event after this candidate."""
        if next_event is None or next_event.position is None:
            return 0.0

        weights = state.config.weights
        hand_after = state.hand(hand).place(finger, prepared.position, weights.fatigue_increment)
        if next_event.instant == prepared.instant:
            used_next = state.used[hand] | {finger}
        else:
            used_next = set()

        memo = state.memo.copy()
        memo.record(prepared.note_number, hand, finger, prepared.start_time)

        return state.cost_model.lookahead(
            hand_after, state.other(hand), next_event.position,
            next_event.note_number, next_event.start_time, memo, used_next
        )

    def _apply_override(
        self,
        state: SolveState,
        prepared: PreparedEvent,
        override: ManualAssignment
    ) -> EngineDebugEvent:
        """
        Honour a manual assignment.

        Free events never take a finger reserved for an override, so a
        reuse here means two overrides force the same finger in one instant.
        """
        hand, finger = override.hand, override.finger

        if finger in state.used[hand]:
            logger.warning(
                f"Manual assignment for event {prepared.event_index} rejected: "
                f"{hand.value} {finger.value} already strikes in this instant"
            )
            return unplayable_event(prepared)

        ok, reason = check_candidate(state.hand(hand), finger, prepared.position, state.config)
        if not ok:
            logger.debug(f"Manual assignment for event {prepared.event_index}: {reason}")

        breakdown = state.score(prepared, hand, finger)
        drift = state.commit(prepared, hand, finger)
        return playable_event(prepared, hand, finger, breakdown, breakdown.total, drift)
