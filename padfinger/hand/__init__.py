"""Hand and finger state model with feasibility checks."""

from .models import (
    FingerType,
    HandSide,
    FingerState,
    HandState,
    FINGER_ORDER,
    finger_key,
    all_finger_keys,
    parse_finger_label,
)
from .feasibility import (
    reach_possible,
    valid_finger_order,
    is_collision,
    check_candidate,
    feasible_fingers,
)

__all__ = [
    "FingerType",
    "HandSide",
    "FingerState",
    "HandState",
    "FINGER_ORDER",
    "finger_key",
    "all_finger_keys",
    "parse_finger_label",
    "reach_possible",
    "valid_finger_order",
    "is_collision",
    "check_candidate",
    "feasible_fingers",
]
