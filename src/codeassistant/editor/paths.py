"""Restrict file operations to the working directory."""

import os
from pathlib import Path

from codeassistant.errors import PathOutsideWorkdirError, PathResolveError


def validate_file_path(workdir: Path, path: Path | str) -> Path:
    """Normalize ``path`` to an absolute path inside ``workdir``.

    Relative paths are taken relative to ``workdir``. Symlinks are not
    followed. Nothing is read or written.
    """
    try:
        root = Path(os.path.abspath(workdir))
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = root / candidate
        absolute = Path(os.path.abspath(candidate))
    except (OSError, ValueError) as e:
        raise PathResolveError(f"failed to resolve absolute path for {path}: {e}") from e

    if not absolute.is_relative_to(root):
        raise PathOutsideWorkdirError(f"file is outside the current directory: {path}")

    return absolute


def validate_file_paths(workdir: Path, paths: list[Path | str]) -> list[Path]:
    return [validate_file_path(workdir, p) for p in paths]
