import cv2
import numpy as np
import pytest

from dual_cam_preview.devices.cameras import opencv_camera
from dual_cam_preview.devices.cameras.base_camera import trigger_mode_name, trigger_mode_value
from dual_cam_preview.devices.cameras.dummy_camera import DummyCamera
from dual_cam_preview.devices.cameras.opencv_camera import OpenCVCamera, resolve_backend


class FakeCapture:
    """Records what OpenCVCamera asks of cv2.VideoCapture."""
    instances = []

    def __init__(self, index, api):
        self.index = index
        self.api = api
        self.props = {cv2.CAP_PROP_FRAME_HEIGHT: 480.0, cv2.CAP_PROP_FRAME_WIDTH: 640.0}
        self.released = False
        FakeCapture.instances.append(self)

    def isOpened(self):
        return self.index != 99

    def read(self):
        if self.index == 99:
            return False, None
        return True, np.full((480, 640, 3), 200, dtype=np.uint8)

    def get(self, prop_id):
        return self.props.get(prop_id, 0.0)

    def set(self, prop_id, value):
        self.props[prop_id] = value
        return True

    def release(self):
        self.released = True


@pytest.fixture
def fake_capture(monkeypatch):
    FakeCapture.instances = []
    monkeypatch.setattr(opencv_camera.cv2, "VideoCapture", FakeCapture)
    return FakeCapture


def test_resolve_backend():
    assert resolve_backend("PVAPI") == cv2.CAP_PVAPI
    assert resolve_backend(" any ") == cv2.CAP_ANY
    with pytest.raises(ValueError):
        resolve_backend("not-a-backend")


def test_opencv_camera_opens_with_backend(fake_capture):
    cam = OpenCVCamera(1, "PVAPI")
    capture = fake_capture.instances[-1]

    assert (capture.index, capture.api) == (1, cv2.CAP_PVAPI)
    assert cam.is_opened()
    assert cam.frame_size() == (480, 640)


def test_opencv_camera_reads_mono(fake_capture):
    cam = OpenCVCamera(0, "ANY")
    frame = cam.read()

    assert frame.shape == (480, 640)
    assert frame.dtype == np.uint8
    assert int(frame[0, 0]) == 200


def test_opencv_camera_failed_read_returns_none(fake_capture):
    cam = OpenCVCamera(99, "ANY")

    assert not cam.is_opened()
    assert cam.read() is None


def test_opencv_camera_exposure_and_release(fake_capture):
    cam = OpenCVCamera(0, "PVAPI")
    cam.set_exposure(60000.0)

    assert cam.get_exposure() == 60000.0
    cam.release()
    assert fake_capture.instances[-1].released


def test_trigger_mode_names():
    assert trigger_mode_name(0) == "Freerun"
    assert trigger_mode_name(4.0) == "Software"
    assert trigger_mode_name(9) == "Unknown"
    assert trigger_mode_value("fixedrate") == 3
    with pytest.raises(ValueError):
        trigger_mode_value("Continuous")


def test_dummy_camera_solid_frames():
    cam = DummyCamera(0, rows=120, cols=160, fill=255)
    frame = cam.read()

    assert frame.shape == (120, 160)
    assert frame.dtype == np.uint8
    assert np.all(frame == 255)
    assert cam.frames_read == 1


def test_dummy_camera_noise_is_seeded():
    a = DummyCamera(0, rows=48, cols=64, seed=3).read()
    b = DummyCamera(0, rows=48, cols=64, seed=3).read()

    assert np.array_equal(a, b)
    assert set(np.unique(a)) <= {0, 127, 255}


def test_dummy_camera_properties_and_trigger():
    cam = DummyCamera(2, frame_rate=12.5, exposure_us=8000.0)

    assert cam.frame_rate() == 12.5
    assert cam.get_exposure() == 8000.0
    assert cam.get_trigger_mode() == "Freerun"
    assert cam.set_trigger_mode("Software")
    assert cam.get_trigger_mode() == "Software"


def test_dummy_camera_closed():
    cam = DummyCamera(1, opened=False)

    assert not cam.is_opened()
    assert cam.read() is None
    assert not cam.set_exposure(1.0)


if __name__ == "__main__":
    test_resolve_backend()
    test_dummy_camera_solid_frames()
