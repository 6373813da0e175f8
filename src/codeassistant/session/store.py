"""JSON file session storage with an archive directory."""

import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from codeassistant.config import (
    ARCHIVE_TIMESTAMP_FORMAT,
    MAX_ARCHIVE_NAME_BYTES,
    SESSION_DIR_MODE,
    SESSION_FILE_MODE,
    history_dir_path,
    session_file_path,
)
from codeassistant.errors import (
    HistoryMissingError,
    NoActiveSessionError,
    SessionArchiveError,
    SessionDeleteError,
    SessionDirNotSpecifiedError,
    SessionExistenceCheckError,
    SessionExistsError,
    SessionHistoryCreateError,
    SessionNameNotSpecifiedError,
    SessionParseError,
    SessionReadError,
    SessionRootCreateError,
    SessionWriteError,
)
from codeassistant.logging import get_logger
from codeassistant.session.models import Session, utcnow

_logger = get_logger(__name__)


def archive_file_name(session: Session) -> str:
    """Sortable archive name: ``YYYYMMDD-HHMMSS_<safe name>.json``.

    The name part is capped at ``MAX_ARCHIVE_NAME_BYTES`` so any session name
    yields a usable filename.
    """
    completed = session.completed_at or utcnow()
    stamp = completed.astimezone().strftime(ARCHIVE_TIMESTAMP_FORMAT)
    safe_name = (
        session.name.lower().replace(" ", "_").replace(os.sep, "_").replace("\0", "")
    )
    safe_name = safe_name.encode("utf-8")[:MAX_ARCHIVE_NAME_BYTES].decode("utf-8", "ignore")
    return f"{stamp}_{safe_name}.json"


def _write_atomic(target: Path, data: str) -> None:
    """Write ``data`` to a temp file beside ``target`` and rename it into place.

    The temp file is removed on failure, so ``target`` is either the old file,
    absent, or complete.
    """
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f"{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, SESSION_FILE_MODE)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class SessionStore:
    """Active session file plus archived history for one working directory.

    The active session lives in ``<dir>/.ca_session.json``; ended sessions are
    moved into ``<dir>/.ca_sessions/``. Every mutation is written straight to
    disk, nothing is cached between calls.
    """

    def __init__(self, directory: Path | str | None):
        self.directory = Path(directory) if directory else None

    @property
    def root(self) -> Path:
        if self.directory is None:
            raise SessionDirNotSpecifiedError("session directory was not specified")
        return self.directory

    @property
    def session_file(self) -> Path:
        return session_file_path(self.root)

    @property
    def history_dir(self) -> Path:
        return history_dir_path(self.root)

    def _active_exists(self) -> bool:
        try:
            os.stat(self.session_file)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise SessionExistenceCheckError(
                f"failed to check if session file exists: {e}"
            ) from e
        return True

    def ensure_storage_layout(self) -> bool:
        """Create the session root and history dirs. Returns whether an active session exists."""
        try:
            self.root.mkdir(mode=SESSION_DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise SessionRootCreateError(
                f"failed to create session root directory {self.root}: {e}"
            ) from e

        try:
            self.history_dir.mkdir(mode=SESSION_DIR_MODE, exist_ok=True)
        except OSError as e:
            raise SessionHistoryCreateError(
                f"failed to create session history directory {self.history_dir}: {e}"
            ) from e

        return self._active_exists()

    def start(self, name: str) -> Session:
        """Start a new session. Fails if one is already in progress."""
        root = self.root
        if not name:
            raise SessionNameNotSpecifiedError("session name was not specified")

        if self.ensure_storage_layout():
            raise SessionExistsError(f"session already in progress in {root}")

        session = Session(name=name)
        self.save(session)
        _logger.info("Session started", name=name, id=session.id)
        return session

    def load(self) -> Session:
        """Read and parse the active session file."""
        try:
            raw = self.session_file.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NoActiveSessionError(f"no active session found in {self.root}") from e
        except UnicodeDecodeError as e:
            raise SessionParseError(
                f"failed to parse session file {self.session_file}: not valid UTF-8"
            ) from e
        except OSError as e:
            raise SessionReadError(f"failed to read session file: {e}") from e

        try:
            return Session.model_validate_json(raw)
        except ValidationError as e:
            raise SessionParseError(
                f"failed to parse session file {self.session_file}: corrupted session data"
            ) from e

    def save(self, session: Session) -> None:
        """Overwrite the active session file via write-then-rename."""
        try:
            _write_atomic(self.session_file, session.model_dump_json(indent=2) + "\n")
        except OSError as e:
            raise SessionWriteError(f"failed to write session file: {e}") from e

    def end(self) -> Path:
        """Archive the active session and remove it. Returns the archive path.

        The active file is only deleted once the archive has been written, and
        the archive is removed again if that delete fails, so a failed end
        leaves no trace and can be retried.
        """
        if not self._active_exists():
            raise NoActiveSessionError(f"no active session found in {self.root}")

        session = self.load()
        session.completed_at = utcnow()

        if not self.history_dir.is_dir():
            raise HistoryMissingError(
                f"session history directory {self.history_dir} does not exist"
            )

        archive = self.history_dir / archive_file_name(session)
        try:
            _write_atomic(archive, session.model_dump_json(indent=2) + "\n")
        except OSError as e:
            raise SessionArchiveError(f"failed to write archive file {archive}: {e}") from e

        try:
            self.session_file.unlink()
        except OSError as e:
            archive.unlink(missing_ok=True)
            raise SessionDeleteError(f"failed to remove session file: {e}") from e

        _logger.info(
            "Session ended",
            name=session.name,
            id=session.id,
            steps=len(session.steps),
            archive=str(archive),
        )
        return archive

    def list_archives(self) -> list[Path]:
        """Archived session files, newest first."""
        if not self.history_dir.is_dir():
            return []
        return sorted(self.history_dir.glob("*.json"), reverse=True)

    def load_archive(self, path: Path) -> Session:
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise SessionParseError(f"failed to parse archive {path}: not valid UTF-8") from e
        except OSError as e:
            raise SessionReadError(f"failed to read archive {path}: {e}") from e
        try:
            return Session.model_validate_json(raw)
        except ValidationError as e:
            raise SessionParseError(f"failed to parse archive {path}") from e
