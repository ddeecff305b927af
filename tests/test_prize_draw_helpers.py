from __future__ import annotations

import random
import unittest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from qrhunt.errors import ValidationError
from qrhunt.prize_draw import (
    DrawEntry,
    WeightingFactors,
    build_entry_pool,
    compute_weight,
    draw_winners,
    pick_distinct_winners,
)
from qrhunt.progress import compute_progress

T0 = datetime(2025, 5, 10, 9, 0, tzinfo=timezone.utc)


def _progress(minutes: list[float], total: int = 3):
    scans = [
        SimpleNamespace(station_id=i + 1, scanned_at=T0 + timedelta(minutes=m))
        for i, m in enumerate(minutes)
    ]
    return compute_progress(1, scans, list(range(1, total + 1)))


class ReverseRandom:
    """Stand-in generator whose shuffle reverses the pool."""

    def shuffle(self, seq) -> None:
        seq.reverse()


class ComputeWeightTests(unittest.TestCase):
    def test_default_factors(self) -> None:
        # 1 base + 3 stations + flat completion bonus
        self.assertEqual(compute_weight(_progress([0, 5, 10]), WeightingFactors()), 5)

    def test_zero_completion_time_gets_no_bonus(self) -> None:
        self.assertEqual(compute_weight(_progress([0, 0, 0]), WeightingFactors()), 4)

    def test_completion_bonus_does_not_depend_on_speed(self) -> None:
        fast = compute_weight(_progress([0, 1, 2]), WeightingFactors())
        slow = compute_weight(_progress([0, 60, 120]), WeightingFactors())
        self.assertEqual(fast, slow)

    def test_missing_factors_fall_back_to_base(self) -> None:
        factors = WeightingFactors(completion_time=None, stations_found=None)
        self.assertEqual(compute_weight(_progress([0, 5, 10]), factors), 1)

    def test_zero_factors(self) -> None:
        factors = WeightingFactors(completion_time=0, stations_found=0)
        self.assertEqual(compute_weight(_progress([0, 5, 10]), factors), 1)

    def test_fractional_weight_rounds_half_up(self) -> None:
        factors = WeightingFactors(completion_time=1, stations_found=0.5)
        # 1 + 1.5 + 1 = 3.5
        self.assertEqual(compute_weight(_progress([0, 5, 10]), factors), 4)

    def test_weight_never_below_one(self) -> None:
        factors = WeightingFactors(completion_time=0, stations_found=-5)
        self.assertEqual(compute_weight(_progress([0, 5, 10]), factors), 1)


class EntryPoolTests(unittest.TestCase):
    def test_weight_controls_ticket_count(self) -> None:
        a = DrawEntry(class_id=1, class_name="A")
        b = DrawEntry(class_id=2, class_name="B")
        pool = build_entry_pool([(a, 3), (b, 1)])

        self.assertEqual(len(pool), 4)
        self.assertEqual(pool.count(a), 3)

    def test_weight_below_one_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_entry_pool([(DrawEntry(class_id=1, class_name="A"), 0)])


class PickDistinctWinnersTests(unittest.TestCase):
    def setUp(self) -> None:
        self.a = DrawEntry(class_id=1, class_name="A")
        self.b = DrawEntry(class_id=2, class_name="B")
        self.c = DrawEntry(class_id=3, class_name="C")

    def test_first_distinct_classes_after_shuffle(self) -> None:
        pool = [self.a, self.a, self.b, self.c, self.c]
        winners = pick_distinct_winners(pool, 2, rng=ReverseRandom())
        self.assertEqual([w.class_id for w in winners], [3, 2])

    def test_winners_are_distinct_and_bounded(self) -> None:
        for seed in range(25):
            pool = build_entry_pool([(self.a, 5), (self.b, 2), (self.c, 1)])
            winners = pick_distinct_winners(pool, 2, rng=random.Random(seed))
            ids = [w.class_id for w in winners]
            self.assertEqual(len(ids), 2)
            self.assertEqual(len(set(ids)), 2)

    def test_more_winners_than_classes_returns_everyone(self) -> None:
        pool = build_entry_pool([(self.a, 2), (self.b, 1)])
        winners = pick_distinct_winners(pool, 10, rng=random.Random(3))
        self.assertEqual({w.class_id for w in winners}, {1, 2})

    def test_invalid_count(self) -> None:
        with self.assertRaises(ValueError):
            pick_distinct_winners([self.a], 0)


class DrawWinnersTests(unittest.TestCase):
    def _class(self, class_id: int, name: str) -> SimpleNamespace:
        return SimpleNamespace(id=class_id, name=name, teacher=None)

    def _scans(self, station_ids, step: float = 5):
        return [
            SimpleNamespace(station_id=s, scanned_at=T0 + timedelta(minutes=i * step))
            for i, s in enumerate(station_ids)
        ]

    def test_only_fully_scanned_classes_enter(self) -> None:
        stations = [SimpleNamespace(id=1), SimpleNamespace(id=2), SimpleNamespace(id=3)]
        classes = [self._class(1, "A"), self._class(2, "B")]
        scans = {1: self._scans([1, 2, 3]), 2: self._scans([1, 2])}

        outcome = draw_winners(
            classes, stations, scans, 5, WeightingFactors(), rng=random.Random(1)
        )

        self.assertEqual([e.school_class.id for e in outcome.eligible], [1])
        self.assertEqual([w.class_id for w in outcome.winners], [1])
        self.assertEqual(outcome.pool_size, 5)
        self.assertEqual(outcome.weights, {1: 5})

    def test_empty_pool(self) -> None:
        stations = [SimpleNamespace(id=1), SimpleNamespace(id=2)]
        with self.assertRaises(ValidationError) as ctx:
            draw_winners(
                [self._class(1, "A")], stations, {1: self._scans([1])}, 1, WeightingFactors()
            )
        self.assertEqual(
            ctx.exception.message,
            "No classes are eligible for the drawing based on current criteria.",
        )

    def test_no_active_stations(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            draw_winners([self._class(1, "A")], [], {}, 1, WeightingFactors())
        self.assertEqual(
            ctx.exception.message,
            "No active stations found. Cannot determine eligibility.",
        )

    def test_invalid_winner_count(self) -> None:
        for bad in (0, -1, True, "2", 1.5):
            with self.assertRaises(ValidationError):
                draw_winners([], [SimpleNamespace(id=1)], {}, bad, WeightingFactors())


if __name__ == "__main__":
    unittest.main()
