"""Cost function and per-run bounce memory."""

from .bounce import BounceMemo, BounceRecord
from .cost_function import CostBreakdown, CostModel, TERM_NAMES

__all__ = [
    "BounceMemo",
    "BounceRecord",
    "CostBreakdown",
    "CostModel",
    "TERM_NAMES",
]
