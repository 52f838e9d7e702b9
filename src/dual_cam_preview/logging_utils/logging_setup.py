# logging_setup.py
"""
Logging for the preview process.
- Camera worker threads and the main loop log through a QueueHandler, so a slow
  disk never stalls a frame read.
- A QueueListener thread owns the rotating log file and a stderr handler for warnings.
- Crash hooks route uncaught exceptions (main and camera threads) into the same log.
"""

from __future__ import annotations
import atexit
import logging
import queue
import sys
import threading
from datetime import datetime
from pathlib import Path
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler

LOG_DIR = Path.home() / "DualCamPreviewLogs"

# Main logger name used across the app
LOGGER_NAME = "dual_cam_preview"

logging_fmt_console = logging.Formatter("[%(levelname)s] %(message)s")
logging_fmt_file = logging.Formatter("%(asctime)s [%(levelname)s] %(threadName)s %(name)s %(message)s")

_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None


def start_logging(level: int = logging.INFO, log_dir: Path | None = None) -> Path | None:
    """
    Route the app logger through a queue to a rotating file in `log_dir`
    (default ~/DualCamPreviewLogs) and to stderr for warnings and errors.
    Returns the log file path; a second call is a no-op and returns None.
    """
    global _listener, _queue_handler

    if _listener is not None:
        return None

    log_dir = Path(log_dir) if log_dir is not None else LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"dual_cam_preview_{datetime.now():%Y%m%d_%H%M%S}.log"

    fh = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8")
    fh.setFormatter(logging_fmt_file)
    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(logging.WARNING)
    sh.setFormatter(logging_fmt_console)

    q: queue.SimpleQueue = queue.SimpleQueue()
    _listener = QueueListener(q, fh, sh, respect_handler_level=True)
    _listener.start()

    _queue_handler = QueueHandler(q)
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    lg.addHandler(_queue_handler)

    atexit.register(shutdown_logging)
    return log_path


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Return the app logger ('dual_cam_preview') or a child under it,
    so module loggers inherit the QueueHandler attached to the app logger.
    """
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)

    # Module names already live under the package
    if name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)

    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def shutdown_logging() -> None:
    """Flush queued records to disk and detach the handlers. Safe to call multiple times."""
    global _listener, _queue_handler

    if _queue_handler is not None:
        logging.getLogger(LOGGER_NAME).removeHandler(_queue_handler)
        _queue_handler = None

    if _listener is not None:
        _listener.stop()  # drains the queue
        for h in _listener.handlers:
            h.close()
        _listener = None


def install_crash_hooks() -> None:
    """
    Log uncaught exceptions from the main thread and from camera worker threads
    as CRITICAL, then hand them to the previous hooks.
    """
    previous_hook = sys.excepthook
    previous_thread_hook = threading.excepthook

    def _excepthook(exc_type, exc, tb):
        get_logger().critical("UNCAUGHT EXCEPTION", exc_info=(exc_type, exc, tb))
        previous_hook(exc_type, exc, tb)

    def _thread_excepthook(args):
        get_logger().critical(
            f"UNCAUGHT EXCEPTION in thread {getattr(args.thread, 'name', '?')}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        previous_thread_hook(args)

    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook
