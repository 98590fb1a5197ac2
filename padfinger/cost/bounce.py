"""
Bounce Memory

Remembers which (hand, finger) last struck each note so that switching
fingers on a recently repeated note is penalised. One memo belongs to
one solve run.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from ..hand.models import FingerType, HandSide


@dataclass(frozen=True)
class BounceRecord:
    hand: HandSide
    finger: FingerType
    time: float


class BounceMemo:
    """Last (hand, finger, time) per note number."""

    def __init__(self, records: Optional[Dict[int, BounceRecord]] = None):
        self._records: Dict[int, BounceRecord] = dict(records or {})

    def last(self, note_number: int) -> Optional[BounceRecord]:
        return self._records.get(note_number)

    def record(self, note_number: int, hand: HandSide, finger: FingerType, time: float):
        self._records[note_number] = BounceRecord(hand=hand, finger=finger, time=time)

    def penalty(
        self,
        note_number: int,
        hand: HandSide,
        finger: FingerType,
        time: float,
        window: float,
        base_penalty: float
    ) -> float:
        """
        Penalty for striking note with (hand, finger) at time.

        Zero when the note was never played, was last played by the same
        finger, or was last played longer than window seconds ago.
        Otherwise base_penalty * (1 - dt / window).
        """
        last = self._records.get(note_number)
        if last is None:
            return 0.0
        if last.hand is hand and last.finger is finger:
            return 0.0

        dt = time - last.time
        if dt < 0 or dt >= window:
            return 0.0
        return base_penalty * (1.0 - dt / window)

    def copy(self) -> 'BounceMemo':
        return BounceMemo(self._records)

    def __len__(self) -> int:
        return len(self._records)
