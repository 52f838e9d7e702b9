import cv2
import numpy as np

from dual_cam_preview.devices.cameras.base_camera import BaseCamera


class DummyCamera(BaseCamera):
    """
    Dummy camera that mirrors OpenCVCamera:
      - open flag set in __init__ (opened=False simulates a missing device)
      - read() returns np.uint8 mono frames of the configured (rows, cols)
      - get/set keep a property table for exposure, frame rate and trigger mode

    fill=None gives mid-gray salt & pepper noise, an int gives a solid frame.
    """

    def __init__(
        self,
        index: int = 0,
        *,
        rows: int = 480,
        cols: int = 640,
        fill: int | None = None,
        frame_rate: float = 30.0,
        exposure_us: float = 15000.0,
        opened: bool = True,
        seed: int | None = None,
    ):
        super().__init__(index)
        self.fill = fill
        self._opened = opened
        self._rng = np.random.default_rng(seed)
        self._props = {
            cv2.CAP_PROP_FRAME_HEIGHT: float(rows),
            cv2.CAP_PROP_FRAME_WIDTH: float(cols),
            cv2.CAP_PROP_FPS: float(frame_rate),
            cv2.CAP_PROP_EXPOSURE: float(exposure_us),
            cv2.CAP_PROP_PVAPI_FRAMESTARTTRIGGERMODE: 0.0,
        }
        self.frames_read = 0

    def is_opened(self) -> bool:
        return self._opened

    def read(self) -> np.ndarray | None:
        if not self._opened:
            return None
        h, w = self.frame_size()
        self.frames_read += 1
        if self.fill is not None:
            return np.full((h, w), self.fill, dtype=np.uint8)
        return self._salt_pepper(h, w)

    def _salt_pepper(self, h, w, density=0.05):
        img = np.full((h, w), 127, dtype=np.uint8)
        num = int(density * h * w / 2)
        if num > 0:
            img[self._rng.integers(0, h, num), self._rng.integers(0, w, num)] = 255
            img[self._rng.integers(0, h, num), self._rng.integers(0, w, num)] = 0
        return img

    def get(self, prop_id: int) -> float:
        return self._props.get(prop_id, 0.0)

    def set(self, prop_id: int, value: float) -> bool:
        if not self._opened:
            return False
        self._props[prop_id] = float(value)
        return True

    def release(self):
        self._opened = False
