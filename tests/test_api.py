import math
import unittest

from fastapi.testclient import TestClient

from api.app import create_app
from api.schemas import PointModel
from api.services.analysis import _to_point
from barpath.vision.detections import Point


def _payload(frames: int = 60, **overrides) -> dict:
    observations = []
    for i in range(frames):
        cy = 100.0 + 50.0 * math.sin(i * 0.2)
        observations.append(
            {
                "detections": [{"x": 95.0, "y": cy - 5.0, "width": 10.0, "height": 10.0, "confidence": 1.0}],
                "landmarks": {"left_wrist": {"x": 90.0, "y": cy}, "right_wrist": {"x": 110.0, "y": cy}},
            }
        )
    payload = {"fps": 30.0, "frames": observations}
    payload.update(overrides)
    return payload


class AnalysisApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(create_app())

    def test_analysis_returns_frames_and_reps(self) -> None:
        response = self.client.post("/analysis", json=_payload())

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["frames"]), 60)
        self.assertEqual(body["total_reps"], 1)
        self.assertEqual(body["reps"][0]["start_frame"], 12)
        self.assertEqual(body["frames"][12]["rep_id"], 1)
        self.assertEqual(body["frames"][0]["wrist_l_x"], 90.0)

    def test_missing_detections_are_not_errors(self) -> None:
        payload = _payload(5)
        payload["frames"][2] = {}
        response = self.client.post("/analysis", json=payload)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["frames"]), 5)

    def test_invalid_settings_are_rejected_with_400(self) -> None:
        response = self.client.post("/analysis", json=_payload(settings={"smoothing_alpha": 1.5}))
        self.assertEqual(response.status_code, 400)
        self.assertIn("smoothing_alpha", response.json()["detail"])

        response = self.client.post("/analysis", json=_payload(calibration={"scale": -1.0}))
        self.assertEqual(response.status_code, 400)

    def test_invalid_fps_fails_validation(self) -> None:
        response = self.client.post("/analysis", json=_payload(fps=0))
        self.assertEqual(response.status_code, 422)

    def test_kalman_settings_are_accepted(self) -> None:
        response = self.client.post(
            "/analysis", json=_payload(settings={"smoothing_type": "kalman"}, calibration={"lift_type": "bench"})
        )
        self.assertEqual(response.status_code, 200)

    def test_kalman_noise_and_min_lift_duration_are_configurable(self) -> None:
        response = self.client.post("/analysis", json=_payload(settings={"min_lift_seconds": 1.0}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total_reps"], 0)

        response = self.client.post("/analysis", json=_payload(settings={"kalman_process_noise": 0.0}))
        self.assertEqual(response.status_code, 400)
        self.assertIn("Kalman", response.json()["detail"])

    def test_optional_joints_pass_through(self) -> None:
        self.assertIsNone(_to_point(None))
        self.assertEqual(_to_point(PointModel(x=1.0, y=2.0)), Point(1.0, 2.0))

    def test_root_redirects_to_docs(self) -> None:
        response = self.client.get("/", follow_redirects=False)
        self.assertEqual(response.status_code, 307)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
