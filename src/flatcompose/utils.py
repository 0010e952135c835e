from __future__ import annotations

import logging
from pathlib import Path

from flatcompose.models import FileAccessError

_log = logging.getLogger("flatcompose.utils")


def resolve_base_dir(base_dir: str | Path | None) -> Path:
    """Directory that relative ``extends.file`` paths are joined onto."""
    if base_dir is None or not str(base_dir).strip():
        return Path.cwd()
    return Path(base_dir).expanduser().resolve()


def resolve_relative(base_dir: Path, rel_path: str) -> Path:
    path = Path(rel_path).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()


def read_document(path: Path, *, context: str = "") -> str:
    """Read a whole document, raising :class:`FileAccessError` on failure."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            return handle.read()
    except FileNotFoundError as exc:
        raise FileAccessError(f"File not found: {path}{context}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise FileAccessError(f"Failed reading '{path}'{context}: {exc}") from exc


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        tmp.replace(path)
    except OSError:
        try:
            tmp.unlink(missing_ok=True)
        except OSError as cleanup_exc:
            _log.warning("Failed to remove partial output %s: %s", tmp, cleanup_exc)
        raise
