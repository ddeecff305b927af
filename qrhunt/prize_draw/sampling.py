"""Weighted winner selection without replacement using a ticket pool."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class DrawEntry:
    """One ticket in the drawing pool."""

    class_id: int
    class_name: str
    teacher_name: Optional[str] = None
    teacher_email: Optional[str] = None


def build_entry_pool(weighted: Iterable[tuple[DrawEntry, int]]) -> list[DrawEntry]:
    """Expand ``(entry, weight)`` pairs into a flat list of tickets.

    A class with weight ``w`` contributes ``w`` identical tickets.
    """

    pool: list[DrawEntry] = []
    for entry, weight in weighted:
        if weight < 1:
            raise ValueError(f"weight must be at least 1, got {weight} for class {entry.class_id}")
        pool.extend([entry] * weight)
    return pool


def pick_distinct_winners(
    pool: list[DrawEntry],
    number_of_winners: int,
    *,
    rng: Optional[random.Random] = None,
) -> list[DrawEntry]:
    """Shuffle ``pool`` in place and take the first distinct classes.

    The pool is shuffled with :meth:`random.Random.shuffle` (Fisher–Yates),
    then scanned in order; the first ticket of each class wins until
    ``number_of_winners`` classes are picked or the pool runs out. Later
    tickets of an already picked class are skipped.

    Parameters
    ----------
    pool : list[DrawEntry]
        Ticket pool from :func:`build_entry_pool`. Mutated.
    number_of_winners : int
        Upper bound on the number of winners.
    rng : Optional[random.Random], default: None
        Random generator to use; useful for deterministic tests. If not
        provided, a new non-deterministic generator is used.

    Returns
    -------
    list[DrawEntry]
        Winners in draw order, at most one per class.
    """

    if number_of_winners < 1:
        raise ValueError("number_of_winners must be at least 1")

    rng = rng or random.Random()
    rng.shuffle(pool)

    winners: list[DrawEntry] = []
    picked: set[int] = set()
    for entry in pool:
        if entry.class_id in picked:
            continue
        winners.append(entry)
        picked.add(entry.class_id)
        if len(winners) >= number_of_winners:
            break
    return winners


__all__ = ["DrawEntry", "build_entry_pool", "pick_distinct_winners"]
