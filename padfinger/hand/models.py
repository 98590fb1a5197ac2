"""
Hand State Model

Immutable snapshots of where each finger rests and how tired it is.
A solver run owns one HandState per hand and replaces it only when a
candidate assignment is committed, so scoring a candidate never mutates
the live state.

Usage:
    from padfinger.hand.models import HandState, HandSide, FingerType

    left = HandState.initial(HandSide.LEFT, home=GridPosition(2.0, 1.5))
    left = left.place(FingerType.INDEX, GridPosition(0, 0), fatigue_increment=0.5)
    print(left.centroid, left.span)
"""

from enum import Enum
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from ..grid.geometry import GridPosition, distance, mean_position


class FingerType(str, Enum):
    """Fingers in anatomical order (thumb first)."""
    THUMB = "thumb"
    INDEX = "index"
    MIDDLE = "middle"
    RING = "ring"
    PINKY = "pinky"

    @property
    def order(self) -> int:
        """Anatomical index, 0 (thumb) to 4 (pinky)."""
        return FINGER_ORDER.index(self)

    @property
    def label(self) -> str:
        return self.value.capitalize()


FINGER_ORDER: Tuple[FingerType, ...] = (
    FingerType.THUMB,
    FingerType.INDEX,
    FingerType.MIDDLE,
    FingerType.RING,
    FingerType.PINKY,
)


class HandSide(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def prefix(self) -> str:
        return "L" if self is HandSide.LEFT else "R"

    @property
    def other(self) -> 'HandSide':
        return HandSide.RIGHT if self is HandSide.LEFT else HandSide.LEFT


def finger_key(hand: HandSide, finger: FingerType) -> str:
    """Usage/fatigue map key, e.g. "L-Thumb"."""
    return f"{hand.prefix}-{finger.label}"


def all_finger_keys() -> List[str]:
    """All ten finger keys, left hand first."""
    return [finger_key(hand, finger) for hand in HandSide for finger in FINGER_ORDER]


def parse_finger_label(label: str) -> Optional[Tuple[HandSide, FingerType]]:
    """
    Parse a pad finger constraint.

    Accepts the short form "L1".."R5" (1 = thumb, 5 = pinky) or a
    finger key such as "R-Index". Returns None if malformed.
    """
    text = str(label).strip()
    for hand in HandSide:
        for finger in FINGER_ORDER:
            if text.lower() == finger_key(hand, finger).lower():
                return hand, finger

    if len(text) != 2 or not text[1].isdigit():
        return None
    side = {"L": HandSide.LEFT, "R": HandSide.RIGHT}.get(text[0].upper())
    number = int(text[1])
    if side is None or not 1 <= number <= len(FINGER_ORDER):
        return None
    return side, FINGER_ORDER[number - 1]


@dataclass(frozen=True)
class FingerState:
    """Resting position (None until first used) and accumulated fatigue."""
    position: Optional[GridPosition] = None
    fatigue: float = 0.0

    @property
    def is_placed(self) -> bool:
        return self.position is not None


@dataclass(frozen=True)
class HandState:
    """
    Snapshot of one hand.

    Attributes:
        side: Which hand
        fingers: Five FingerStates in anatomical order
        home: Resting pose the hand drifts back toward
    """
    side: HandSide
    fingers: Tuple[FingerState, ...]
    home: GridPosition

    @classmethod
    def initial(cls, side: HandSide, home: GridPosition) -> 'HandState':
        """Fresh hand with no finger placed and zero fatigue."""
        return cls(side=side, fingers=tuple(FingerState() for _ in FINGER_ORDER), home=home)

    def finger(self, finger: FingerType) -> FingerState:
        return self.fingers[finger.order]

    def placed(self) -> List[Tuple[FingerType, GridPosition]]:
        """(finger, position) for every finger that has been placed."""
        return [
            (finger, state.position)
            for finger, state in zip(FINGER_ORDER, self.fingers)
            if state.position is not None
        ]

    @property
    def centroid(self) -> GridPosition:
        """Mean of placed finger positions, or home when none is placed."""
        positions = [pos for _, pos in self.placed()]
        if not positions:
            return self.home
        return mean_position(positions)

    @property
    def span(self) -> float:
        """Thumb to pinky distance; 0 unless both are placed."""
        thumb = self.finger(FingerType.THUMB).position
        pinky = self.finger(FingerType.PINKY).position
        if thumb is None or pinky is None:
            return 0.0
        return distance(thumb, pinky)

    def with_finger(self, finger: FingerType, state: FingerState) -> 'HandState':
        fingers = list(self.fingers)
        fingers[finger.order] = state
        return replace(self, fingers=tuple(fingers))

    def place(
        self,
        finger: FingerType,
        position: GridPosition,
        fatigue_increment: float = 0.0
    ) -> 'HandState':
        """Move a finger onto a pad and add to its fatigue."""
        current = self.finger(finger)
        return self.with_finger(
            finger,
            FingerState(position=position, fatigue=current.fatigue + fatigue_increment)
        )

    def decay(self, amount: float) -> 'HandState':
        """Recover every finger's fatigue by amount, floored at zero."""
        if amount <= 0:
            return self
        return replace(self, fingers=tuple(
            FingerState(position=state.position, fatigue=max(0.0, state.fatigue - amount))
            for state in self.fingers
        ))
