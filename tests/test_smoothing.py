import unittest

from barpath.config import AnalysisSettings, SmoothingType
from barpath.signals.smoothing import (
    AxisEstimate,
    EmaFilter,
    KalmanFilter,
    filter_for,
    smooth_path,
)
from barpath.vision.detections import Point


class EmaSmoothingTests(unittest.TestCase):
    def test_first_point_unchanged_then_blended(self) -> None:
        points = [Point(100, 100), Point(105, 102), Point(110, 104), Point(115, 106)]
        smoothed = smooth_path(points, EmaFilter(alpha=0.25))

        self.assertEqual(len(smoothed), len(points))
        self.assertEqual(smoothed[0], Point(100, 100))
        self.assertAlmostEqual(smoothed[1].x, 0.25 * 105 + 0.75 * 100)
        self.assertAlmostEqual(smoothed[1].y, 0.25 * 102 + 0.75 * 100)
        self.assertAlmostEqual(smoothed[2].x, 0.25 * 110 + 0.75 * smoothed[1].x)

    def test_each_step_lies_strictly_between_previous_output_and_input(self) -> None:
        points = [Point(0, 0)] + [Point(10, -10)] * 40
        smoothed = smooth_path(points, EmaFilter(alpha=0.3))
        for previous, current in zip(smoothed, smoothed[1:]):
            self.assertGreater(current.x, previous.x)
            self.assertLess(current.x, 10)
            self.assertLess(current.y, previous.y)
            self.assertGreater(current.y, -10)
        self.assertAlmostEqual(smoothed[-1].x, 10, places=2)

    def test_none_is_preserved_and_does_not_touch_state(self) -> None:
        points = [Point(100, 100), None, Point(110, 104), Point(115, 106)]
        smoothed = smooth_path(points, EmaFilter(alpha=0.25))

        self.assertEqual(len(smoothed), len(points))
        self.assertIsNone(smoothed[1])
        self.assertAlmostEqual(smoothed[2].x, 0.25 * 110 + 0.75 * 100)

    def test_leading_none_then_first_known_passes_through(self) -> None:
        smoothed = smooth_path([None, None, Point(3, 4)], EmaFilter(alpha=0.5))
        self.assertEqual(smoothed, [None, None, Point(3, 4)])


class KalmanSmoothingTests(unittest.TestCase):
    def test_first_update_from_origin(self) -> None:
        smoothed = smooth_path([Point(10.0, 20.0)], KalmanFilter(process_noise=0.01, measurement_noise=0.1))
        gain = 1.01 / (1.01 + 0.1)
        self.assertAlmostEqual(smoothed[0].x, gain * 10.0)
        self.assertAlmostEqual(smoothed[0].y, gain * 20.0)

    def test_axis_update_matches_scalar_equations(self) -> None:
        axis = AxisEstimate().update(10.0, 0.01, 0.1)
        gain = 1.01 / 1.11
        self.assertAlmostEqual(axis.estimate, gain * 10.0)
        self.assertAlmostEqual(axis.error, (1 - gain) * 1.01)

        second = axis.update(10.0, 0.01, 0.1)
        predicted = axis.error + 0.01
        gain2 = predicted / (predicted + 0.1)
        self.assertAlmostEqual(second.estimate, axis.estimate + gain2 * (10.0 - axis.estimate))

    def test_none_freezes_filter_state(self) -> None:
        flt = KalmanFilter()
        with_gap = smooth_path([Point(5, 5), None, Point(6, 7)], flt)
        without_gap = smooth_path([Point(5, 5), Point(6, 7)], flt)
        self.assertIsNone(with_gap[1])
        self.assertEqual(with_gap[0], without_gap[0])
        self.assertEqual(with_gap[2], without_gap[1])

    def test_constant_input_converges(self) -> None:
        smoothed = smooth_path([Point(50, 80)] * 60, KalmanFilter())
        self.assertAlmostEqual(smoothed[-1].x, 50, places=3)
        self.assertAlmostEqual(smoothed[-1].y, 80, places=3)


class FilterSelectionTests(unittest.TestCase):
    def test_filter_for_settings(self) -> None:
        self.assertEqual(filter_for(AnalysisSettings()), EmaFilter(alpha=0.25))
        kalman = filter_for(
            AnalysisSettings(smoothing_type=SmoothingType.KALMAN, kalman_measurement_noise=0.2)
        )
        self.assertEqual(kalman, KalmanFilter(process_noise=0.01, measurement_noise=0.2))

    def test_filter_for_accepts_plain_string(self) -> None:
        self.assertIsInstance(filter_for(AnalysisSettings(smoothing_type="kalman")), KalmanFilter)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
