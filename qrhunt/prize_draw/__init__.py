"""Utilities for the prize drawing subsystem."""

from .engine import (
    DrawOutcome,
    EligibleClass,
    PrizeDrawEngine,
    assess_eligibility,
    draw_winners,
)
from .sampling import DrawEntry, build_entry_pool, pick_distinct_winners
from .weighting import WeightingFactors, compute_weight

__all__ = [
    "DrawEntry",
    "DrawOutcome",
    "EligibleClass",
    "PrizeDrawEngine",
    "WeightingFactors",
    "assess_eligibility",
    "build_entry_pool",
    "compute_weight",
    "draw_winners",
    "pick_distinct_winners",
]
