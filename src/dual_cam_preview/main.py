"""Command line entry point: dual-camera live preview with frame-rate diagnostics."""

import argparse
import logging
import sys
from pathlib import Path

from dual_cam_preview.acquisition.acquisition_loop import PreviewError, run_preview
from dual_cam_preview.config.preview_config import (
    load_preview_config,
    preview_config_toml_path,
    save_preview_config,
)
from dual_cam_preview.devices.cameras.dummy_camera import DummyCamera
from dual_cam_preview.logging_utils.logging_setup import get_logger, install_crash_hooks, start_logging

log = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dual-cam-preview",
        description="Open two cameras, show them side by side and print frame rates. ESC quits.",
    )
    parser.add_argument("--config", type=Path, default=preview_config_toml_path,
                        help="TOML file with a [preview] section")
    parser.add_argument("--dummy", action="store_true", help="use synthetic cameras instead of hardware")
    parser.add_argument("--no-display", dest="display", action="store_false", default=None,
                        help="run headless (use with --max-frames)")
    parser.add_argument("--scale", type=float, help="resize factor in (0, 1]")
    parser.add_argument("--exposure", dest="exposure_s", type=float, help="exposure time in seconds")
    parser.add_argument("--backend", help="OpenCV capture backend name, e.g. PVAPI, ANY, V4L2")
    parser.add_argument("--cameras", dest="n_cameras", type=int, help="number of cameras")
    parser.add_argument("--first-index", type=int, help="device index of the first camera")
    parser.add_argument("--max-frames", type=int, help="stop after this many frames (0 = until ESC)")
    parser.add_argument("--read-timeout", dest="read_timeout_s", type=float,
                        help="seconds to wait for one parallel read (0 = forever)")
    parser.add_argument("--trigger-mode", help="PvAPI frame start trigger mode, e.g. Freerun")
    parser.add_argument("--pause", dest="pause_on_exit", action="store_true", default=None,
                        help="wait for Enter before exiting")
    parser.add_argument("--save-config", type=Path, help="write the effective config to this TOML file")
    parser.add_argument("--no-log-file", action="store_true", help="do not write a log file")
    parser.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG level")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.no_log_file:
        log_path = start_logging(logging.DEBUG if args.verbose else logging.INFO)
        if log_path is not None:
            print(f"[Log] Writing log to {log_path}")
        install_crash_hooks()

    try:
        config = load_preview_config(args.config).with_overrides(
            display=args.display,
            scale=args.scale,
            exposure_s=args.exposure_s,
            backend=args.backend,
            n_cameras=args.n_cameras,
            first_index=args.first_index,
            max_frames=args.max_frames,
            read_timeout_s=args.read_timeout_s,
            trigger_mode=args.trigger_mode,
            pause_on_exit=args.pause_on_exit,
        ).validate()
    except (OSError, KeyError, TypeError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        log.error(f"Invalid configuration from {args.config}: {e}")
        return EXIT_USAGE

    if args.save_config is not None:
        save_preview_config(args.save_config, config)
        print(f"[Config] Saved effective config to {args.save_config}")

    log.info(f"Starting preview with {config}")
    camera_factory = None
    if args.dummy:
        def camera_factory(index):
            return DummyCamera(index, seed=index)

    try:
        run_preview(config, camera_factory)
    except PreviewError as e:
        print(e, file=sys.stderr)
        log.error(str(e))
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
