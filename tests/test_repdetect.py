import unittest

from barpath.config import AnalysisSettings, Calibration
from barpath.repdetect.baseline import (
    LiftWindow,
    RepMetric,
    aggregate_reps,
    detect_lift_windows,
)
from barpath.vision.detections import Point


class LiftWindowTests(unittest.TestCase):
    def test_end_before_start_is_unrepresentable(self) -> None:
        with self.assertRaises(ValueError):
            LiftWindow(10, 9)
        with self.assertRaises(ValueError):
            LiftWindow(-1, 3)

    def test_single_frame_window_is_allowed(self) -> None:
        window = LiftWindow(4, 4)
        self.assertEqual(window.length, 0)
        self.assertTrue(window.contains(4))
        self.assertFalse(window.contains(5))


class DetectLiftWindowsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = AnalysisSettings(lift_start_speed=50.0, lift_start_hysteresis=0.6)

    def test_slow_fast_slow_yields_one_window(self) -> None:
        velocities = [10.0] * 10 + [100.0] * 20 + [10.0] * 10
        windows = detect_lift_windows(velocities, 30.0, self.settings)

        self.assertEqual(len(windows), 1)
        self.assertEqual(windows[0].start, 10)
        self.assertLessEqual(windows[0].end, 30)
        self.assertGreaterEqual(windows[0].length, 15)

    def test_exit_frame_is_included(self) -> None:
        velocities = [5.0] * 5 + [-100.0] * 20 + [5.0] * 5
        windows = detect_lift_windows(velocities, 30.0, self.settings)
        self.assertEqual(windows, [LiftWindow(5, 25)])

    def test_short_burst_is_discarded(self) -> None:
        velocities = [10.0] * 3 + [100.0] * 5 + [10.0] * 30
        self.assertEqual(detect_lift_windows(velocities, 30.0, self.settings), [])

    def test_hysteresis_band_keeps_window_open(self) -> None:
        velocities = [100.0] + [40.0] * 20 + [10.0]
        windows = detect_lift_windows(velocities, 30.0, self.settings)
        self.assertEqual(windows, [LiftWindow(0, 21)])

    def test_none_samples_are_skipped(self) -> None:
        velocities = [None] + [100.0] * 10 + [None] * 5 + [100.0] * 5 + [10.0]
        windows = detect_lift_windows(velocities, 30.0, self.settings)
        self.assertEqual(windows, [LiftWindow(1, 21)])

    def test_multiple_windows_in_order(self) -> None:
        rep = [100.0] * 20 + [0.0] * 10
        windows = detect_lift_windows([0.0] + rep * 3, 30.0, self.settings)
        self.assertEqual(windows, [LiftWindow(1, 21), LiftWindow(31, 51), LiftWindow(61, 81)])

    def test_window_open_at_end_is_kept_without_min_length(self) -> None:
        velocities = [10.0] * 5 + [100.0] * 3
        windows = detect_lift_windows(velocities, 30.0, self.settings)
        self.assertEqual(windows, [LiftWindow(5, 7)])

    def test_window_open_at_end_can_require_min_length(self) -> None:
        strict = AnalysisSettings(enforce_min_duration_at_end=True)
        self.assertEqual(detect_lift_windows([10.0] * 5 + [100.0] * 3, 30.0, strict), [])
        self.assertEqual(
            detect_lift_windows([10.0] * 5 + [100.0] * 20, 30.0, strict),
            [LiftWindow(5, 24)],
        )

    def test_empty_and_idle_signals(self) -> None:
        self.assertEqual(detect_lift_windows([], 30.0, self.settings), [])
        self.assertEqual(detect_lift_windows([None, 1.0, -1.0], 30.0, self.settings), [])


class AggregateRepsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calibration = Calibration(scale=0.5)
        self.points = [
            Point(0, 100), Point(0, 110), Point(0, 120),
            None, None,
            Point(0, 120), Point(0, 100), Point(0, 90),
        ]
        self.velocities = [None, 10.0, 10.0, None, None, None, -20.0, -10.0]

    def test_metrics_and_numbering_by_window_position(self) -> None:
        windows = [LiftWindow(0, 2), LiftWindow(3, 4), LiftWindow(5, 7)]
        reps = aggregate_reps(windows, self.points, self.velocities, self.calibration)

        self.assertEqual([rep.rep_number for rep in reps], [1, 3])
        self.assertEqual(
            reps[0],
            RepMetric(
                rep_number=1,
                rom_cm=10.0,
                peak_velocity=10.0,
                avg_velocity=10.0,
                depth_percent=25.0,
                start_frame=0,
                end_frame=2,
            ),
        )
        self.assertAlmostEqual(reps[1].rom_cm, 15.0)
        self.assertAlmostEqual(reps[1].peak_velocity, 20.0)
        self.assertAlmostEqual(reps[1].avg_velocity, 15.0)
        self.assertAlmostEqual(reps[1].depth_percent, 37.5)

    def test_window_without_velocities_is_skipped(self) -> None:
        reps = aggregate_reps([LiftWindow(4, 5), LiftWindow(6, 7)], self.points, self.velocities, self.calibration)
        self.assertEqual([rep.rep_number for rep in reps], [2])

    def test_depth_is_capped_at_one_hundred(self) -> None:
        reps = aggregate_reps([LiftWindow(0, 2)], self.points, self.velocities, Calibration(scale=5.0))
        self.assertEqual(reps[0].rom_cm, 100.0)
        self.assertEqual(reps[0].depth_percent, 100.0)

    def test_reference_depth_override(self) -> None:
        calibration = Calibration(scale=0.5, reference_depth_cm=20.0)
        reps = aggregate_reps([LiftWindow(0, 2)], self.points, self.velocities, calibration)
        self.assertAlmostEqual(reps[0].depth_percent, 50.0)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
