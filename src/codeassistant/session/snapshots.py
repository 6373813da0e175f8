"""Pre-step copies of modified files, used for rollback and revise."""

import os
import shutil
from pathlib import Path

from codeassistant.config import snapshots_dir_path
from codeassistant.errors import FileReadError, FileWriteError, SnapshotMissingError
from codeassistant.logging import get_logger

_logger = get_logger(__name__)


def step_snapshot_dir(directory: Path, session_id: str, step_id: int) -> Path:
    return snapshots_dir_path(directory) / session_id / f"step-{step_id}"


def _snapshot_path(directory: Path, snapshot_dir: Path, file: Path) -> Path:
    # Files are validated to live inside the working directory
    return snapshot_dir / Path(file).relative_to(directory)


def snapshot_files(
    directory: Path, session_id: str, step_id: int, files: list[Path]
) -> Path:
    """Copy ``files`` into the snapshot dir for a step, mirroring their layout."""
    directory = Path(os.path.abspath(directory))
    dest = step_snapshot_dir(directory, session_id, step_id)
    if dest.exists():
        shutil.rmtree(dest)

    try:
        for file in files:
            target = _snapshot_path(directory, dest, file)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(file, target)
    except OSError as e:
        raise FileWriteError(f"failed to snapshot files for step {step_id}: {e}") from e

    _logger.debug("Snapshot taken", step=step_id, files=len(files), path=str(dest))
    return dest


def restore_files(
    directory: Path, session_id: str, step_id: int, files: list[Path]
) -> list[Path]:
    """Copy a step's snapshot back over the working files.

    Every snapshot is checked before anything is written.
    """
    directory = Path(os.path.abspath(directory))
    src = step_snapshot_dir(directory, session_id, step_id)

    pairs = []
    for file in files:
        snapshot = _snapshot_path(directory, src, file)
        if not snapshot.is_file():
            raise SnapshotMissingError(f"no snapshot of {file} for step {step_id}")
        pairs.append((snapshot, Path(file)))

    try:
        for snapshot, file in pairs:
            shutil.copy2(snapshot, file)
    except OSError as e:
        raise FileWriteError(f"failed to restore files for step {step_id}: {e}") from e

    _logger.info("Files restored", step=step_id, files=len(pairs))
    return [file for _, file in pairs]


def read_snapshot(directory: Path, session_id: str, step_id: int, file: Path) -> str:
    """Contents of ``file`` as it was before ``step_id`` ran."""
    directory = Path(os.path.abspath(directory))
    snapshot = _snapshot_path(directory, step_snapshot_dir(directory, session_id, step_id), file)
    try:
        return snapshot.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SnapshotMissingError(f"no snapshot of {file} for step {step_id}") from e
    except OSError as e:
        raise FileReadError(f"failed to read snapshot {snapshot}: {e}") from e
