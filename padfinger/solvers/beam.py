"""
Beam Search Strategy - Keeps the K cheapest partial assignments at every event.

Unlike greedy, a locally expensive choice survives as long as it stays in
the top beam_width partial sequences, so the search can trade a costly
stretch now for a cheaper passage later.
"""

import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..utils.config import EngineConfig
from ..utils.logging_utils import get_logger
from .base import SolverStrategy
from .evaluation import PreparedEvent, SolveState, playable_event, unplayable_event
from .types import (
    EngineDebugEvent,
    EngineResult,
    ManualAssignment,
    Performance,
    index_manual_assignments,
)

logger = get_logger(__name__)


@dataclass
class BeamNode:
    """
    Node in the beam.

    Attributes:
        state: Hand state after the events on the path
        path: Debug records so far (as tuple for immutability)
        cost: Cumulative cost, unplayable steps counted at the fixed penalty
    """
    state: SolveState
    path: Tuple[EngineDebugEvent, ...]
    cost: float = 0.0

    @property
    def depth(self) -> int:
        return len(self.path)


class BeamSearchStrategy(SolverStrategy):
    """
    Beam search over complete assignments.

    Algorithm:
        1. Start with a single node holding fresh hand states
        2. For each event (in time order):
           - Expand every node with every feasible (hand, finger), or with
             an unplayable step when none is feasible
           - Keep the beam_width cheapest nodes (stable, so ties keep
             enumeration order)
        3. Return the cheapest complete node
    """
    name = "beam"
    description = "Beam search over partial assignments"
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
        start_time = time.perf_counter()
        events = self.prepare(performance)
        manual = index_manual_assignments(manual_assignments)
        penalty = config.weights.unplayable_penalty

        beam = [BeamNode(state=self.new_state(config, events, manual), path=())]
        states_explored = 0

        for prepared in events:
            expanded: List[BeamNode] = []
            for node in beam:
                children = self._expand(node, prepared, manual, penalty)
                states_explored += len(children)
                expanded.extend(children)

            expanded.sort(key=lambda n: n.cost)
            beam = expanded[:config.beam_width]

            logger.debug(
                f"[BeamSearch] Event {prepared.event_index}: {len(expanded)} candidates, "
                f"best cost {beam[0].cost:.2f}"
            )

        best = beam[0]
        elapsed = time.perf_counter() - start_time
        logger.info(
            f"[BeamSearch] Complete: {len(events)} events, cost {best.cost:.2f}, "
            f"{states_explored} states explored in {elapsed:.2f}s"
        )

        return self.build_result(list(best.path), best.state)

    def _expand(
        self,
        node: BeamNode,
        prepared: PreparedEvent,
        manual: dict,
        penalty: float
    ) -> List[BeamNode]:
        """Children of one node for the next event."""
        base_state = node.state.copy()
        base_state.advance(prepared)

        if prepared.position is None:
            return [self._unplayable_child(node, base_state, prepared, penalty)]

        override = manual.get(prepared.event_index)
        if override is not None:
            if override.finger in base_state.used[override.hand]:
                logger.debug(
                    f"[BeamSearch] Manual assignment for event {prepared.event_index} "
                    f"reuses a finger in one instant"
                )
                return [self._unplayable_child(node, base_state, prepared, penalty)]
            options = [(override.hand, override.finger)]
        else:
            options = base_state.options(prepared.position)

        if not options:
            return [self._unplayable_child(node, base_state, prepared, penalty)]

        children = []
        for hand, finger in options:
            breakdown = base_state.score(prepared, hand, finger)
            state = base_state.copy()
            drift = state.commit(prepared, hand, finger)
            record = playable_event(prepared, hand, finger, breakdown, breakdown.total, drift)
            children.append(BeamNode(
                state=state,
                path=node.path + (record,),
                cost=node.cost + breakdown.total
            ))
        return children

    @staticmethod
    def _unplayable_child(
        node: BeamNode,
        state: SolveState,
        prepared: PreparedEvent,
        penalty: float
    ) -> BeamNode:
        return BeamNode(
            state=state,
            path=node.path + (unplayable_event(prepared),),
            cost=node.cost + penalty
        )
