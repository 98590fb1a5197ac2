"""
Biomechanical Cost Function

Scores a feasible (hand, finger, pad) candidate as the sum of six
non-negative terms:

    movement   distance travelled x finger strength weight
    stretch    pull away from the hand centroid + thumb/pinky span penalty
    drift      distance of the hand centroid from its home pose
    bounce     switching fingers on a recently repeated note
    fatigue    accumulated fatigue of the finger
    crossover  hand reaching past the other hand's centroid

Usage:
    from padfinger.cost import CostModel, BounceMemo

    model = CostModel(engine_config)
    breakdown = model.evaluate(left, right, FingerType.INDEX, pos, 36, 0.0, BounceMemo())
    print(breakdown.total)
"""

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Optional

from ..grid.geometry import GridPosition, distance
from ..hand.models import FINGER_ORDER, FingerType, HandSide, HandState
from ..hand.feasibility import check_candidate
from ..utils.config import EngineConfig
from .bounce import BounceMemo


TERM_NAMES = ("movement", "stretch", "drift", "bounce", "fatigue", "crossover")


@dataclass(frozen=True)
class CostBreakdown:
    """Per-term cost of one assignment."""
    movement: float = 0.0
    stretch: float = 0.0
    drift: float = 0.0
    bounce: float = 0.0
    fatigue: float = 0.0
    crossover: float = 0.0

    @property
    def total(self) -> float:
        return (self.movement + self.stretch + self.drift
                + self.bounce + self.fatigue + self.crossover)

    def to_dict(self) -> Dict[str, float]:
        result = asdict(self)
        result["total"] = self.total
        return result


class CostModel:
    """
    Cost function bound to one engine configuration.

    Args:
        config: Engine configuration (weights, home poses, reach radii)
    """

    def __init__(self, config: EngineConfig):
        self.config = config
        self.weights = config.weights

    def strength(self, finger: FingerType) -> float:
        return self.weights.finger_strength[finger.value]

    def span_penalty(self, span: float) -> float:
        """Quadratic penalty once the thumb/pinky span exceeds the ideal reach."""
        ideal = self.weights.ideal_reach
        if span <= ideal:
            return 0.0
        ratio = min((span - ideal) / (self.weights.max_span - ideal), 1.0)
        return self.weights.span_penalty_scale * ratio * ratio

    def crossover(self, hand: HandSide, position: GridPosition, other_state: HandState) -> float:
        """Penalty for reaching past the other hand's centroid."""
        other_col = other_state.centroid.col
        if hand is HandSide.LEFT and position.col > other_col:
            return self.weights.crossover_weight * (position.col - other_col)
        if hand is HandSide.RIGHT and position.col < other_col:
            return self.weights.crossover_weight * (other_col - position.col)
        return 0.0

    def evaluate(
        self,
        hand_state: HandState,
        other_state: HandState,
        finger: FingerType,
        position: GridPosition,
        note_number: int,
        time: float,
        bounce_memo: BounceMemo
    ) -> CostBreakdown:
        """
        Cost of striking position with finger. The candidate must already
        be known to be feasible.
        """
        hand = hand_state.side
        finger_state = hand_state.finger(finger)
        weight = self.strength(finger)

        if finger_state.position is None:
            movement = 0.0
        else:
            movement = distance(finger_state.position, position) * weight

        after = hand_state.place(finger, position)
        centroid = after.centroid

        stretch = (self.weights.stretch_weight * weight * distance(position, centroid)
                   + self.span_penalty(after.span))
        drift = self.config.stiffness * distance(centroid, hand_state.home)
        bounce = bounce_memo.penalty(
            note_number, hand, finger, time,
            self.weights.bounce_window, self.weights.bounce_penalty
        )

        return CostBreakdown(
            movement=movement,
            stretch=stretch,
            drift=drift,
            bounce=bounce,
            fatigue=finger_state.fatigue,
            crossover=self.crossover(hand, position, other_state)
        )

    def cheapest(
        self,
        hand_state: HandState,
        other_state: HandState,
        position: GridPosition,
        note_number: int,
        time: float,
        bounce_memo: BounceMemo,
        used_in_instant: Iterable[FingerType] = ()
    ) -> Optional[float]:
        """Lowest total over the hand's feasible fingers, or None if none is feasible."""
        used = set(used_in_instant)
        best = None
        for finger in FINGER_ORDER:
            ok, _ = check_candidate(hand_state, finger, position, self.config, used)
            if not ok:
                continue
            total = self.evaluate(
                hand_state, other_state, finger, position, note_number, time, bounce_memo
            ).total
            if best is None or total < best:
                best = total
        return best

    def lookahead(
        self,
        hand_after: HandState,
        other_state: HandState,
        next_position: Optional[GridPosition],
        next_note: Optional[int],
        next_time: Optional[float],
        bounce_memo: BounceMemo,
        used_next: Iterable[FingerType] = ()
    ) -> float:
        """
        One-step lookahead penalty for the same hand.

        Args:
            hand_after: Hypothetical hand state after the candidate is committed
            next_position: Pad of the next event (None when unmapped or absent)
            used_next: Fingers of this hand unavailable to the next event

        Returns:
            0 when there is no next pad; the no-candidate penalty when this
            hand cannot play it; a fraction of the cheapest option when that
            exceeds the threshold; else 0
        """
        if next_position is None or next_note is None or next_time is None:
            return 0.0

        best = self.cheapest(
            hand_after, other_state, next_position, next_note, next_time,
            bounce_memo, used_next
        )
        if best is None:
            return self.weights.lookahead_no_candidate_penalty
        if best > self.weights.lookahead_threshold:
            return self.weights.lookahead_fraction * best
        return 0.0
