import cv2
import numpy as np

from dual_cam_preview.devices.cameras.base_camera import BaseCamera
from dual_cam_preview.logging_utils.logging_setup import get_logger

log = get_logger(__name__)


def resolve_backend(name: str) -> int:
    """Map a capture API name ("PVAPI", "ANY", "V4L2", ...) to its cv2.CAP_* constant."""
    attr = f"CAP_{name.strip().upper()}"
    if not hasattr(cv2, attr):
        raise ValueError(f"Unknown OpenCV capture backend: {name!r}")
    return int(getattr(cv2, attr))


def _to_mono2d(a):
    """Ensure a 2D (H, W) array for mono images."""
    a = np.asarray(a)
    if a.ndim == 3 and a.shape[-1] == 1:
        a = a[..., 0]   # drop the singleton channel
    elif a.ndim == 3:
        a = cv2.cvtColor(a, cv2.COLOR_BGR2GRAY)
    return a


class OpenCVCamera(BaseCamera):
    """
    Camera opened through cv2.VideoCapture.

    For Allied Vision Prosilica / Manta GigE cameras OpenCV must be built with the
    PvAPI interface enabled (backend "PVAPI"). Other backends work the same way as
    long as they expose exposure and frame rate properties.
    """

    def __init__(self, index: int, backend: str = "PVAPI"):
        super().__init__(index)
        self.backend = backend
        api = resolve_backend(backend)
        log.info(f"Opening camera {index} with backend {backend}")
        self.capture = cv2.VideoCapture(index, api)

    def is_opened(self) -> bool:
        return bool(self.capture.isOpened())

    def read(self) -> np.ndarray | None:
        ok, frame = self.capture.read()
        if not ok or frame is None:
            return None
        return _to_mono2d(frame)

    def get(self, prop_id: int) -> float:
        return float(self.capture.get(prop_id))

    def set(self, prop_id: int, value: float) -> bool:
        return bool(self.capture.set(prop_id, value))

    def release(self):
        self.capture.release()
        log.info(f"Camera {self.index} released")
