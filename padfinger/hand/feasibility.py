"""
Feasibility Checks

Hard constraints a candidate (hand, finger, pad) must pass before it is
ever scored:

- Reach: a placed finger cannot jump further than its max reach radius
- Ordering: fingers keep their anatomical column order (right hand
  thumb to pinky left to right, left hand mirrored)
- Collision: two fingers of one hand cannot share a pad in one instant
- Uniqueness: a finger already striking in this instant is unavailable

Usage:
    from padfinger.hand.feasibility import feasible_fingers

    fingers = feasible_fingers(hand_state, target, engine_config, excluded)
"""

from typing import Iterable, List, Optional, Tuple, TYPE_CHECKING

from ..grid.geometry import GridPosition, distance
from .models import FINGER_ORDER, FingerType, HandSide, HandState

if TYPE_CHECKING:
    from ..utils.config import EngineConfig


def reach_possible(
    from_pos: Optional[GridPosition],
    to_pos: GridPosition,
    finger: FingerType,
    config: 'EngineConfig'
) -> bool:
    """
    Check whether a finger can travel between two pads.

    An unplaced finger (from_pos is None) can reach anywhere.
    """
    if from_pos is None:
        return True
    return distance(from_pos, to_pos) <= config.max_reach[finger.value]


def valid_finger_order(
    hand_state: HandState,
    finger: FingerType,
    position: GridPosition,
    hand: Optional[HandSide] = None
) -> bool:
    """
    Check that placing finger at position keeps column order.

    Right hand: every placed finger with a lower anatomical index must sit
    at a column <= the target, every higher one at a column >=. The left
    hand is mirrored. Unplaced fingers impose nothing.
    """
    hand = hand or hand_state.side
    target_order = finger.order

    for other, other_pos in hand_state.placed():
        if other is finger:
            continue
        if hand is HandSide.RIGHT:
            if other.order < target_order and other_pos.col > position.col:
                return False
            if other.order > target_order and other_pos.col < position.col:
                return False
        else:
            if other.order < target_order and other_pos.col < position.col:
                return False
            if other.order > target_order and other_pos.col > position.col:
                return False
    return True


def is_collision(
    hand_state: HandState,
    finger: FingerType,
    position: GridPosition,
    active_fingers: Optional[Iterable[FingerType]] = None
) -> bool:
    """
    Check whether another finger of this hand already holds the pad.

    Args:
        active_fingers: Fingers to consider (those down in the current
            instant). None considers every placed finger.
    """
    active = set(active_fingers) if active_fingers is not None else None
    for other, other_pos in hand_state.placed():
        if other is finger:
            continue
        if active is not None and other not in active:
            continue
        if other_pos == position:
            return True
    return False


def check_candidate(
    hand_state: HandState,
    finger: FingerType,
    position: GridPosition,
    config: 'EngineConfig',
    used_in_instant: Iterable[FingerType] = ()
) -> Tuple[bool, Optional[str]]:
    """
    Run every hard constraint for one candidate.

    Returns:
        (is_feasible, reason) tuple
    """
    used = set(used_in_instant)
    if finger in used:
        return False, "Finger already used in this instant"

    if not reach_possible(hand_state.finger(finger).position, position, finger, config):
        return False, "Target beyond reach"

    if not valid_finger_order(hand_state, finger, position):
        return False, "Finger order violation"

    if is_collision(hand_state, finger, position, used):
        return False, "Pad already held by another finger"

    return True, None


def feasible_fingers(
    hand_state: HandState,
    position: GridPosition,
    config: 'EngineConfig',
    used_in_instant: Iterable[FingerType] = ()
) -> List[FingerType]:
    """Fingers of this hand that may strike position, in anatomical order."""
    used = set(used_in_instant)
    return [
        finger for finger in FINGER_ORDER
        if check_candidate(hand_state, finger, position, config, used)[0]
    ]
