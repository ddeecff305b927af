"""Hunt progress computation."""

from .engine import ProgressResult, compute_progress, round_half_up

__all__ = [
    "ProgressResult",
    "compute_progress",
    "round_half_up",
]
