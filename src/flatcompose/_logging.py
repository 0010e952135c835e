"""Logging setup shared by the library and the ``flatcompose`` command."""

from __future__ import annotations

import logging
import os
from pathlib import Path

_HANDLER_ATTR = "_flatcompose_handler_id"
_STREAM_HANDLER_ID = "flatcompose_stream"
_FILE_HANDLER_ID = "flatcompose_file"
_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"

LOG_LEVEL_ENV = "FLATCOMPOSE_LOG_LEVEL"
LOG_FILE_ENV = "FLATCOMPOSE_LOG_FILE"


def _resolve_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    raw = level if level is not None else os.environ.get(LOG_LEVEL_ENV, "")
    resolved = getattr(logging, raw.strip().upper(), None) if raw.strip() else None
    if not isinstance(resolved, int):
        return logging.WARNING
    return resolved


def _find_handler(root: logging.Logger, handler_id: str) -> logging.Handler | None:
    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, None) == handler_id:
            return handler
    return None


def _install(root: logging.Logger, handler: logging.Handler, handler_id: str) -> None:
    setattr(handler, _HANDLER_ATTR, handler_id)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)


def _drop(root: logging.Logger, handler: logging.Handler | None) -> None:
    if handler is None:
        return
    root.removeHandler(handler)
    handler.close()


def _sync_file_handler(root: logging.Logger, file_path: Path | None) -> None:
    current = _find_handler(root, _FILE_HANDLER_ID)
    if file_path is None:
        _drop(root, current)
        return
    if (
        isinstance(current, logging.FileHandler)
        and Path(current.baseFilename).resolve() == file_path
    ):
        return
    _drop(root, current)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    _install(
        root, logging.FileHandler(file_path, encoding="utf-8"), _FILE_HANDLER_ID
    )


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the ``flatcompose`` namespace."""
    return logging.getLogger(f"flatcompose.{name}")


def setup_logging(
    *, level: int | str | None = None, log_file: str | Path | None = None
) -> None:
    """Configure the ``flatcompose`` logger tree.

    The stream level comes from *level* (a ``logging`` constant or a level
    name) and falls back to ``FLATCOMPOSE_LOG_LEVEL``, then WARNING. A file
    handler is attached when *log_file* or ``FLATCOMPOSE_LOG_FILE`` is set;
    it always records INFO and above so resolution runs leave a trace.
    Calling this repeatedly reconfigures the same handlers.
    """
    stream_level = _resolve_level(level)
    root = logging.getLogger("flatcompose")

    stream_handler = _find_handler(root, _STREAM_HANDLER_ID)
    if stream_handler is None:
        stream_handler = logging.StreamHandler()
        _install(root, stream_handler, _STREAM_HANDLER_ID)
    stream_handler.setLevel(stream_level)

    raw_file = str(log_file) if log_file is not None else os.environ.get(LOG_FILE_ENV, "")
    file_path = Path(raw_file.strip()).expanduser().resolve() if raw_file.strip() else None
    _sync_file_handler(root, file_path)

    effective_level = stream_level
    file_handler = _find_handler(root, _FILE_HANDLER_ID)
    if file_handler is not None:
        file_level = min(stream_level, logging.INFO)
        file_handler.setLevel(file_level)
        effective_level = min(effective_level, file_level)
    root.setLevel(effective_level)
