import time

import cv2
import numpy as np

NO_KEY = -1


class PreviewWindow:
    """Single OpenCV HighGUI window showing the composite image at a fixed screen position."""

    def __init__(self, name: str, x: int = 780, y: int = 50):
        self.name = name
        self.x = x
        self.y = y
        self.is_open = False

    def open(self):
        cv2.namedWindow(self.name, cv2.WINDOW_AUTOSIZE)
        self.is_open = True

    def show(self, image: np.ndarray):
        cv2.imshow(self.name, image)
        cv2.moveWindow(self.name, self.x, self.y)

    def poll_key(self, timeout_ms: int) -> int:
        """Key code pressed within `timeout_ms`, or NO_KEY."""
        key = cv2.waitKey(max(1, int(timeout_ms)))
        return NO_KEY if key < 0 else key & 0xFF

    def close(self):
        if self.is_open:
            cv2.destroyWindow(self.name)
            self.is_open = False


class HeadlessDisplay:
    """Stand-in used when display is disabled: shows nothing and never reports a key."""

    def __init__(self):
        self.is_open = False

    def open(self):
        self.is_open = True

    def show(self, image: np.ndarray):
        pass

    def poll_key(self, timeout_ms: int) -> int:
        time.sleep(timeout_ms / 1000.0)
        return NO_KEY

    def close(self):
        self.is_open = False
