from dataclasses import dataclass

import cv2
import numpy as np


@dataclass(frozen=True)
class Slot:
    """Region of the composite image owned by one camera."""
    x: int
    y: int
    width: int
    height: int

    def view(self, composite: np.ndarray) -> np.ndarray:
        return composite[self.y:self.y + self.height, self.x:self.x + self.width]


@dataclass
class PreviewBuffers:
    """
    Buffers allocated once before the loop starts.

    Attributes:
        frames (list[np.ndarray]): One mono raw frame per camera, (rows, cols).
        resized (list[np.ndarray]): One downscaled frame per camera, (slot height, slot width).
        composite (np.ndarray): All resized frames side by side, left to right.
        slots (list[Slot]): Disjoint region of `composite` for each camera.
    """
    frames: list[np.ndarray]
    resized: list[np.ndarray]
    composite: np.ndarray
    slots: list[Slot]


def resized_size(cols: int, rows: int, scale: float) -> tuple[int, int]:
    """(width, height) of a cols x rows frame scaled by `scale`, rounded like cv2.resize."""
    if not 0 < scale <= 1:
        raise ValueError(f"scale must be in (0, 1], got {scale}")
    return int(round(cols * scale)), int(round(rows * scale))


def resize_frame(frame: np.ndarray, scale: float, dst: np.ndarray | None = None) -> np.ndarray:
    """Linear downscale. When `dst` is given it is filled in place and must have the target size."""
    if dst is None:
        return cv2.resize(frame, None, fx=scale, fy=scale, interpolation=cv2.INTER_LINEAR)
    h, w = dst.shape[:2]
    return cv2.resize(frame, (w, h), dst=dst, interpolation=cv2.INTER_LINEAR)


def compute_slots(n_cameras: int, slot_width: int, slot_height: int) -> list[Slot]:
    """Slot i sits at (i * slot_width, 0). The slots tile a (slot_height, n * slot_width) image."""
    if n_cameras < 1:
        raise ValueError("need at least one camera")
    return [Slot(x=i * slot_width, y=0, width=slot_width, height=slot_height) for i in range(n_cameras)]


def allocate_buffers(rows: int, cols: int, n_cameras: int, scale: float) -> PreviewBuffers:
    resized_size(cols, rows, scale)  # rejects a scale outside (0, 1]
    frames = [np.zeros((rows, cols), dtype=np.uint8) for _ in range(n_cameras)]
    resized = [resize_frame(frame, scale) for frame in frames]

    # Slot size follows what cv2.resize actually produced
    slot_h, slot_w = resized[0].shape[:2]

    slots = compute_slots(n_cameras, slot_w, slot_h)
    composite = np.zeros((slot_h, slot_w * n_cameras), dtype=resized[0].dtype)
    return PreviewBuffers(frames=frames, resized=resized, composite=composite, slots=slots)


def to_mono8(frame: np.ndarray) -> np.ndarray:
    """Scale a Mono10/12/16 (or float 0..1) frame down to the uint8 range of the preview buffers."""
    if frame.dtype == np.uint8:
        return frame
    if np.issubdtype(frame.dtype, np.integer):
        alpha = 255.0 / np.iinfo(frame.dtype).max
    else:
        alpha = 255.0
    return cv2.convertScaleAbs(frame, alpha=alpha)
