import abc

import cv2
import numpy as np

# PvAPI frame start trigger modes as reported by CAP_PROP_PVAPI_FRAMESTARTTRIGGERMODE
TRIGGER_MODES = {
    0: "Freerun",
    1: "SyncIn1",
    2: "SyncIn2",
    3: "FixedRate",
    4: "Software",
}


def trigger_mode_name(value: float) -> str:
    return TRIGGER_MODES.get(int(value), "Unknown")


def trigger_mode_value(name: str) -> int:
    for value, mode in TRIGGER_MODES.items():
        if mode.lower() == name.strip().lower():
            return value
    raise ValueError(f"Unknown trigger mode: {name!r}. Choose from {list(TRIGGER_MODES.values())}")


class BaseCamera(abc.ABC):
    """
    Abstract base class for one capture device opened by index.
    Provides a common interface for the OpenCV and dummy implementations.
    Property ids are OpenCV's cv2.CAP_PROP_* constants.
    """

    def __init__(self, index: int):
        self.index = index

    @abc.abstractmethod
    def is_opened(self) -> bool:
        pass

    @abc.abstractmethod
    def read(self) -> np.ndarray | None:
        """
        Block until the next frame is available.
        Should return a 2D uint8 array, or None if the device delivered nothing.
        """
        pass

    @abc.abstractmethod
    def get(self, prop_id: int) -> float:
        pass

    @abc.abstractmethod
    def set(self, prop_id: int, value: float) -> bool:
        pass

    @abc.abstractmethod
    def release(self):
        pass

    # ---- Convenience accessors shared by all implementations ----

    def frame_size(self) -> tuple[int, int]:
        """(rows, cols) as reported by the device."""
        return int(self.get(cv2.CAP_PROP_FRAME_HEIGHT)), int(self.get(cv2.CAP_PROP_FRAME_WIDTH))

    def get_exposure(self) -> float:
        return self.get(cv2.CAP_PROP_EXPOSURE)

    def set_exposure(self, exposure_us: float) -> bool:
        return self.set(cv2.CAP_PROP_EXPOSURE, exposure_us)

    def frame_rate(self) -> float:
        """Frame rate reported by the driver, independent of the loop timing."""
        return self.get(cv2.CAP_PROP_FPS)

    def get_trigger_mode(self) -> str:
        return trigger_mode_name(self.get(cv2.CAP_PROP_PVAPI_FRAMESTARTTRIGGERMODE))

    def set_trigger_mode(self, name: str) -> bool:
        return self.set(cv2.CAP_PROP_PVAPI_FRAMESTARTTRIGGERMODE, float(trigger_mode_value(name)))
