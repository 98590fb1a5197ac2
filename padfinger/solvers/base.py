"""
Base Strategy Module - Abstract base class for assignment strategies.
"""

from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, Iterable, List, Optional

import numpy as np

from ..cost.cost_function import TERM_NAMES, CostBreakdown, CostModel
from ..exceptions import UnsupportedSolverModeError
from ..grid.mapping import GridMapping, NotePositionResolver
from ..hand.models import FINGER_ORDER, HandSide, all_finger_keys, finger_key
from ..utils.config import EngineConfig, InstrumentConfig
from ..utils.logging_utils import get_logger
from .evaluation import (
    AssignmentEvaluator,
    PreparedEvent,
    SolveState,
    pinned_fingers,
    prepare_events,
    reserved_choices,
)
from .types import (
    Difficulty,
    EngineDebugEvent,
    EngineResult,
    ManualAssignment,
    Performance,
    compute_score,
)

logger = get_logger(__name__)


class SolverStrategy(ABC):
    """
    Abstract base class for all assignment strategies.

    Subclasses implement solve() and define name and description class
    attributes. Synchronous strategies also set is_synchronous and
    implement solve_sync().

    Attributes:
        name: Short identifier for the strategy
        description: Human-readable description
        is_synchronous: Whether solve_sync() is supported
    """
    name: str = "base"
    description: str = "Base strategy"
    is_synchronous: bool = False

    def __init__(
        self,
        instrument: InstrumentConfig,
        grid_mapping: Optional[GridMapping] = None
    ):
        self.instrument = instrument
        self.grid_mapping = grid_mapping
        self.resolver = NotePositionResolver(instrument, grid_mapping)

    @property
    def split_col(self) -> float:
        """Column dividing the left and right halves of the grid."""
        return self.instrument.cols / 2

    def update_grid_mapping(self, grid_mapping: Optional[GridMapping]):
        """Use a different custom mapping for subsequent solves."""
        self.grid_mapping = grid_mapping
        self.resolver = NotePositionResolver(self.instrument, grid_mapping)

    @abstractmethod
    async def solve(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> EngineResult:
        """
        Assign a hand and finger to every event of the performance.

        Args:
            performance: Events to assign (any order)
            config: Engine configuration
            manual_assignments: Forced (hand, finger) per event index

        Returns:
            EngineResult with one debug event per input event
        """
        pass

    def solve_sync(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> EngineResult:
        raise UnsupportedSolverModeError(self.name)

    def prepare(self, performance: Performance) -> List[PreparedEvent]:
        return prepare_events(performance, self.resolver)

    def new_state(
        self,
        config: EngineConfig,
        events: List[PreparedEvent],
        manual: Dict[int, ManualAssignment]
    ) -> SolveState:
        """Fresh solve state honouring manual reservations and pad finger constraints."""
        return SolveState(
            config, CostModel(config), self.split_col,
            reserved_choices(events, manual), pinned_fingers(self.grid_mapping)
        )

    def new_evaluator(self, config: EngineConfig, repair: bool = True) -> AssignmentEvaluator:
        return AssignmentEvaluator(
            config, self.split_col, repair, pinned_fingers(self.grid_mapping)
        )

    def build_result(
        self,
        debug_events: List[EngineDebugEvent],
        state: SolveState,
        **logs
    ) -> EngineResult:
        """
        Aggregate per-event records into an EngineResult.

        Args:
            debug_events: One record per event
            state: Final solve state (for the fatigue snapshot)
            **logs: evolution_log / annealing_trace / optimization_log
        """
        hard_count = sum(1 for e in debug_events if e.difficulty is Difficulty.HARD)
        unplayable_count = sum(1 for e in debug_events if e.difficulty is Difficulty.UNPLAYABLE)

        playable = [e for e in debug_events if e.is_playable]
        usage = Counter(finger_key(e.choice[0], e.finger) for e in playable)
        finger_usage_stats = {key: usage[key] for key in all_finger_keys() if usage[key]}

        fatigue_map = {
            finger_key(side, finger): state.hand(side).finger(finger).fatigue
            for side in HandSide
            for finger in FINGER_ORDER
        }

        drifts = [e.centroid_drift for e in playable if e.centroid_drift is not None]
        average_drift = float(np.mean(drifts)) if drifts else 0.0

        breakdowns = [e.cost_breakdown for e in debug_events if e.cost_breakdown is not None]
        if breakdowns:
            means = np.array(
                [[getattr(b, name) for name in TERM_NAMES] for b in breakdowns]
            ).mean(axis=0)
            average_metrics = CostBreakdown(*(float(v) for v in means))
        else:
            average_metrics = CostBreakdown()

        score = compute_score(hard_count, unplayable_count)
        logger.info(
            f"[{self.name}] {len(debug_events)} events: score={score:.0f} "
            f"hard={hard_count} unplayable={unplayable_count}"
        )

        return EngineResult(
            score=score,
            unplayable_count=unplayable_count,
            hard_count=hard_count,
            debug_events=debug_events,
            finger_usage_stats=finger_usage_stats,
            fatigue_map=fatigue_map,
            average_drift=average_drift,
            average_metrics=average_metrics,
            solver_name=self.name,
            **logs
        )
