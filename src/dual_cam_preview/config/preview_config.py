from dataclasses import dataclass, asdict, replace
from pathlib import Path

import tomli
import tomli_w

from dual_cam_preview.devices.cameras.base_camera import trigger_mode_value
from dual_cam_preview.devices.cameras.opencv_camera import resolve_backend


@dataclass
class PreviewConfig:
    """
    Settings for one run of the dual-camera preview.

    Attributes:
        n_cameras (int): Number of cameras opened at startup. The layout puts one slot per camera,
                         left to right.
        first_index (int): Device index of the first camera; camera i is opened at first_index + i.
        backend (str): OpenCV capture API name, resolved as cv2.CAP_<backend> (e.g. "PVAPI", "ANY").
        scale (float): Resize factor f in (0, 1] applied to every raw frame before compositing.
        exposure_s (float): Exposure time in seconds. Written to the devices in microseconds.
        trigger_mode (str): Optional PvAPI frame start trigger mode ("Freerun", "Software", ...).
                            Empty string leaves the device setting untouched.
        display (bool): Show the composite in a window. When False the loop runs headless.
        window_name (str): Title of the preview window.
        window_x (int), window_y (int): Screen position of the preview window.
        key_poll_ms (int): Key poll timeout after every refresh.
        cancel_key (int): Key code that ends acquisition (27 = ESC).
        read_timeout_s (float): Upper bound for one parallel read. 0 waits forever.
        max_frames (int): Stop after this many iterations. 0 runs until the cancel key.
        pause_on_exit (bool): Wait for Enter before the process exits.
    """
    n_cameras: int = 2
    first_index: int = 0
    backend: str = "PVAPI"
    scale: float = 0.4
    exposure_s: float = 0.06
    trigger_mode: str = ""
    display: bool = True
    window_name: str = "real-time image acquisition"
    window_x: int = 780
    window_y: int = 50
    key_poll_ms: int = 10
    cancel_key: int = 27
    read_timeout_s: float = 0.0
    max_frames: int = 0
    pause_on_exit: bool = False

    @property
    def exposure_us(self) -> float:
        return self.exposure_s * 1_000_000

    def validate(self) -> "PreviewConfig":
        if self.n_cameras < 1:
            raise ValueError(f"n_cameras must be >= 1, got {self.n_cameras}")
        if not 0 < self.scale <= 1:
            raise ValueError(f"scale must be in (0, 1], got {self.scale}")
        if self.exposure_s <= 0:
            raise ValueError(f"exposure_s must be positive, got {self.exposure_s}")
        if self.key_poll_ms < 0:
            raise ValueError(f"key_poll_ms must be >= 0, got {self.key_poll_ms}")
        if self.read_timeout_s < 0 or self.max_frames < 0:
            raise ValueError("read_timeout_s and max_frames must be >= 0")
        resolve_backend(self.backend)
        if self.trigger_mode:
            trigger_mode_value(self.trigger_mode)
        return self

    def with_overrides(self, **kwargs) -> "PreviewConfig":
        """Copy with every non-None keyword applied."""
        changes = {k: v for k, v in kwargs.items() if v is not None}
        return replace(self, **changes)


# Path to config file
preview_config_toml_path = Path(__file__).parent.resolve() / "preview_config.toml"


def load_preview_config(path: Path = preview_config_toml_path, section: str = "preview") -> PreviewConfig:
    """Load config for given section. Unknown keys raise TypeError."""
    with Path(path).open("rb") as f:
        raw = tomli.load(f)[section]
    return PreviewConfig(**raw)


def save_preview_config(path: Path, config: PreviewConfig, section: str = "preview"):
    """Write config into its section, keeping other sections of an existing file."""
    path = Path(path)
    data = {}
    if path.exists():
        with path.open("rb") as f:
            data = tomli.load(f)

    data[section] = asdict(config)

    with path.open("wb") as f:
        tomli_w.dump(data, f)
