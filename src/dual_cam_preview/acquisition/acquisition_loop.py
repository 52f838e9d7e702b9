"""
Dual-camera acquisition loop.

Opens the cameras, checks that they agree on frame geometry, allocates every
buffer once, then repeats: parallel read + resize + composite, display, key poll,
frame-rate report. ESC ends the loop.
"""

import concurrent.futures
from enum import Enum
from typing import Callable

import cv2
import numpy as np

from dual_cam_preview.acquisition.composite_layout import PreviewBuffers, allocate_buffers, resize_frame, to_mono8
from dual_cam_preview.acquisition.frame_timing import FpsAccumulator, now_ms
from dual_cam_preview.acquisition.preview_display import HeadlessDisplay, PreviewWindow
from dual_cam_preview.config.preview_config import PreviewConfig
from dual_cam_preview.devices.cameras.base_camera import BaseCamera
from dual_cam_preview.devices.cameras.opencv_camera import OpenCVCamera
from dual_cam_preview.logging_utils.logging_setup import get_logger

log = get_logger(__name__)

CameraFactory = Callable[[int], BaseCamera]

# How long close() waits for reads still running after a timeout
RELEASE_GRACE_S = 1.0


class LoopState(Enum):
    RUNNING = "running"
    TERMINATED = "terminated"


# ---------- Errors ----------

class PreviewError(RuntimeError):
    pass


class CameraOpenError(PreviewError):
    def __init__(self, index: int):
        super().__init__(f"Cannot open camera {index}.")
        self.index = index


class GeometryMismatchError(PreviewError):
    def __init__(self, index: int, expected: tuple[int, int], actual: tuple[int, int]):
        super().__init__(
            f"Camera {index} reports frame size {actual[1]}x{actual[0]}, "
            f"expected {expected[1]}x{expected[0]} (camera 0 at startup). All cameras must match."
        )
        self.index = index
        self.expected = expected
        self.actual = actual


class FrameReadError(PreviewError):
    def __init__(self, index: int):
        super().__init__(f"Camera {index} returned no frame.")
        self.index = index


class AcquisitionTimeoutError(PreviewError):
    pass


# ---------- Initialization ----------

def open_cameras(config: PreviewConfig, camera_factory: CameraFactory | None = None) -> list[BaseCamera]:
    """
    Open config.n_cameras devices, camera i at device index first_index + i.
    The first camera that fails to open raises CameraOpenError; the ones already open are released.
    """
    if camera_factory is None:
        def camera_factory(index):
            return OpenCVCamera(index, config.backend)

    cameras = []
    for i in range(config.n_cameras):
        cam = camera_factory(config.first_index + i)
        if not cam.is_opened():
            log.error(f"Camera {i} (device index {config.first_index + i}) failed to open")
            cam.release()
            release_cameras(cameras)
            raise CameraOpenError(i)
        cameras.append(cam)
    log.info(f"Opened {len(cameras)} camera(s)")
    return cameras


def validate_geometry(cameras: list[BaseCamera]) -> tuple[int, int]:
    """Return the common (rows, cols); raise GeometryMismatchError at the first camera that differs."""
    expected = cameras[0].frame_size()
    if expected[0] <= 0 or expected[1] <= 0:
        raise PreviewError(f"Camera 0 reports an empty frame size {expected[1]}x{expected[0]}.")
    for i, cam in enumerate(cameras[1:], start=1):
        actual = cam.frame_size()
        if actual != expected:
            raise GeometryMismatchError(i, expected, actual)
    return expected


def apply_exposure(cameras: list[BaseCamera], exposure_us: float) -> float:
    """Set every camera's exposure in microseconds. Prior values are printed, not restored."""
    exposure = 0.0
    for i, cam in enumerate(cameras):
        exposure = cam.get_exposure()
        print(f"Exposure value of the camera {i} at the beginning is {exposure:g}")
        exposure = exposure_us
        if not cam.set_exposure(exposure):
            log.warning(f"Camera {i} did not accept exposure {exposure:g} us")
    return exposure


def apply_trigger_mode(cameras: list[BaseCamera], trigger_mode: str):
    for i, cam in enumerate(cameras):
        if trigger_mode and not cam.set_trigger_mode(trigger_mode):
            log.warning(f"Camera {i} did not accept trigger mode {trigger_mode}")
        print(f"Trigger mode of the camera {i} is {cam.get_trigger_mode()}")


def release_cameras(cameras: list[BaseCamera]):
    for cam in cameras:
        cam.release()


def format_report(frame_rates: list[float], timing: FpsAccumulator) -> str:
    per_cam = " ".join(f"FPScam{i}={rate:g}" for i, rate in enumerate(frame_rates))
    return f"{per_cam} frame#{timing.frame_count} my_fps={timing.last_fps:g} avg_fps={timing.avg_fps:g}"


# ---------- Loop ----------

class AcquisitionLoop:
    """
    Fork-join acquisition over a fixed set of cameras.

    Every camera task writes only its own frame/resized buffers and its own slot of
    the composite, so the parallel writes need no lock. Timing and counters are
    touched only after all tasks have joined.
    """

    def __init__(
        self,
        cameras: list[BaseCamera],
        config: PreviewConfig,
        *,
        display=None,
        clock: Callable[[], float] = now_ms,
    ):
        self.cameras = cameras
        self.config = config
        self.clock = clock
        if display is None:
            display = PreviewWindow(config.window_name, config.window_x, config.window_y) \
                if config.display else HeadlessDisplay()
        self.display = display

        rows, cols = validate_geometry(cameras)
        self.buffers: PreviewBuffers = allocate_buffers(rows, cols, len(cameras), config.scale)
        self.frame_rates = [0.0] * len(cameras)
        self.state = LoopState.RUNNING
        self._read_timeout = config.read_timeout_s or None
        self._futures: list[concurrent.futures.Future] = []
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=len(cameras), thread_name_prefix="camera"
        )

    @property
    def composite(self):
        return self.buffers.composite

    def _grab(self, i: int):
        cam = self.cameras[i]
        frame = cam.read()
        if frame is None:
            raise FrameReadError(i)
        frame_buf = self.buffers.frames[i]
        if frame.shape != frame_buf.shape:
            raise GeometryMismatchError(i, frame_buf.shape, frame.shape)
        np.copyto(frame_buf, to_mono8(frame))
        self.frame_rates[i] = cam.frame_rate()
        resized = resize_frame(frame_buf, self.config.scale, dst=self.buffers.resized[i])
        self.buffers.slots[i].view(self.buffers.composite)[:] = resized

    def read_all(self):
        """Read, resize and composite every camera in parallel; return once all are done."""
        self._futures = [self._executor.submit(self._grab, i) for i in range(len(self.cameras))]
        for i, future in enumerate(self._futures):
            try:
                future.result(timeout=self._read_timeout)
            except concurrent.futures.TimeoutError as e:
                raise AcquisitionTimeoutError(
                    f"Camera {i} did not deliver a frame within {self._read_timeout} s"
                ) from e

    def step(self, timing: FpsAccumulator) -> tuple[LoopState, FpsAccumulator]:
        start = self.clock()

        self.read_all()
        timing = timing.count_frame()

        self.display.show(self.buffers.composite)
        key = self.display.poll_key(self.config.key_poll_ms)
        if key == self.config.cancel_key:
            self.display.close()
            log.info(f"Cancel key pressed after {timing.frame_count} frame(s)")
            return LoopState.TERMINATED, timing

        timing = timing.record(self.clock() - start)
        print(format_report(self.frame_rates, timing))

        if self.config.max_frames and timing.frame_count >= self.config.max_frames:
            self.display.close()
            return LoopState.TERMINATED, timing
        return LoopState.RUNNING, timing

    def run(self) -> FpsAccumulator:
        timing = FpsAccumulator()
        self.display.open()
        print("Press ESC to terminate real-time acquisition.")
        while self.state is LoopState.RUNNING:
            self.state, timing = self.step(timing)
        log.info(f"Acquisition stopped: {timing.frame_count} frame(s), avg_fps={timing.avg_fps:.2f}")
        return timing

    def close(self):
        # A timed-out read may still be blocked in the driver: give it a moment before release
        _, pending = concurrent.futures.wait(self._futures, timeout=RELEASE_GRACE_S)
        if pending:
            log.warning(f"{len(pending)} camera read(s) still blocked; releasing cameras anyway")
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.display.close()
        release_cameras(self.cameras)


# ---------- Entry ----------

def teardown(pause_on_exit: bool = False):
    print(f"Compiled with OpenCV version {cv2.__version__}")
    if pause_on_exit:
        input("Press Enter to exit...")


def run_preview(
    config: PreviewConfig,
    camera_factory: CameraFactory | None = None,
    display=None,
) -> FpsAccumulator:
    """
    Full program: open, validate, configure, loop until cancel, tear down.
    Startup failures raise before any window is created.
    """
    cameras = open_cameras(config, camera_factory)
    try:
        loop = AcquisitionLoop(cameras, config, display=display)
    except (PreviewError, ValueError):
        release_cameras(cameras)
        raise

    try:
        exposure = apply_exposure(cameras, config.exposure_us)
        apply_trigger_mode(cameras, config.trigger_mode)
        rows, cols = loop.buffers.frames[0].shape
        print(f"Frame size of the camera is {cols}x{rows}.")
        print(f"Exposure value of both cameras is set to {exposure:g}")
        timing = loop.run()
    finally:
        loop.close()

    teardown(config.pause_on_exit)
    return timing
