from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from qrhunt.progress import compute_progress, round_half_up

T0 = datetime(2025, 5, 10, 10, 0, tzinfo=timezone.utc)


def scan(station_id: int, minutes: float) -> SimpleNamespace:
    return SimpleNamespace(station_id=station_id, scanned_at=T0 + timedelta(minutes=minutes))


class RoundHalfUpTests(unittest.TestCase):
    def test_halves_round_up(self) -> None:
        self.assertEqual(round_half_up(12.5), 13)
        self.assertEqual(round_half_up(66.666), 67)
        self.assertEqual(round_half_up(2.4), 2)
        self.assertEqual(round_half_up(0), 0)


class ComputeProgressTests(unittest.TestCase):
    def test_all_stations_scanned_completes(self) -> None:
        result = compute_progress(1, [scan(1, 0), scan(2, 2), scan(3, 5)], [1, 2, 3])

        self.assertTrue(result.is_completed)
        self.assertEqual(result.completed_count, 3)
        self.assertEqual(result.total_stations, 3)
        self.assertEqual(result.progress_percentage, 100)
        self.assertEqual(result.start_time, T0)
        self.assertEqual(result.end_time, T0 + timedelta(minutes=5))
        self.assertEqual(result.completion_time, 5.0)

    def test_partial_progress_has_no_end_time(self) -> None:
        result = compute_progress(1, [scan(1, 0), scan(2, 3)], [1, 2, 3])

        self.assertFalse(result.is_completed)
        self.assertEqual(result.progress_percentage, 67)
        self.assertEqual(result.start_time, T0)
        self.assertIsNone(result.end_time)
        self.assertIsNone(result.completion_time)

    def test_percentage_rounds_half_up(self) -> None:
        result = compute_progress(1, [scan(1, 0)], list(range(1, 9)))
        self.assertEqual(result.progress_percentage, 13)

    def test_duplicate_scans_count_once(self) -> None:
        scans = [scan(1, 0), scan(1, 30), scan(2, 10)]
        result = compute_progress(1, scans, [1, 2])

        self.assertEqual(result.completed_count, 2)
        # first scan of station 1 starts the clock; its re-scan ends it
        self.assertEqual(result.start_time, T0)
        self.assertEqual(result.end_time, T0 + timedelta(minutes=30))
        self.assertEqual(result.completion_time, 30.0)

    def test_no_active_stations(self) -> None:
        result = compute_progress(1, [scan(1, 0)], [])

        self.assertFalse(result.is_completed)
        self.assertEqual(result.progress_percentage, 0)
        self.assertEqual(result.total_stations, 0)

    def test_no_scans(self) -> None:
        result = compute_progress(1, [], [1, 2])

        self.assertEqual(result.completed_count, 0)
        self.assertIsNone(result.start_time)
        self.assertFalse(result.is_completed)

    def test_scans_of_inactive_stations_are_ignored(self) -> None:
        scans = [scan(9, -60), scan(1, 0), scan(2, 4)]
        result = compute_progress(1, scans, [1, 2])

        self.assertTrue(result.is_completed)
        self.assertEqual(result.completed_count, 2)
        self.assertEqual(result.start_time, T0)
        self.assertEqual(result.completion_time, 4.0)
        self.assertLessEqual(result.progress_percentage, 100)

    def test_naive_timestamps_are_treated_as_utc(self) -> None:
        naive = SimpleNamespace(station_id=1, scanned_at=datetime(2025, 5, 10, 10, 0))
        result = compute_progress(1, [naive, scan(2, 1)], [1, 2])

        self.assertEqual(result.start_time, T0)
        self.assertEqual(result.completion_time, 1.0)

    def test_accepts_station_objects(self) -> None:
        stations = [SimpleNamespace(id=1), SimpleNamespace(id=2)]
        result = compute_progress(7, [scan(1, 0)], stations)

        self.assertEqual(result.class_id, 7)
        self.assertEqual(result.progress_percentage, 50)

    def test_to_json(self) -> None:
        data = compute_progress(1, [scan(1, 0), scan(2, 5)], [1, 2]).to_json()

        self.assertEqual(
            data,
            {
                "completedCount": 2,
                "totalStations": 2,
                "progressPercentage": 100,
                "isCompleted": True,
                "startTime": T0.isoformat(),
                "endTime": (T0 + timedelta(minutes=5)).isoformat(),
                "completionTime": 5.0,
            },
        )


if __name__ == "__main__":
    unittest.main()
