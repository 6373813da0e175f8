"""Tests for session storage and step recording."""

import json
import os
import re
from pathlib import Path

import pytest

from codeassistant.config import SESSION_FILE_NAME, history_dir_path, session_file_path
from codeassistant.errors import (
    HistoryMissingError,
    NoActiveSessionError,
    SessionArchiveError,
    SessionDeleteError,
    SessionDirNotSpecifiedError,
    SessionExistsError,
    SessionHistoryCreateError,
    SessionNameNotSpecifiedError,
    SessionParseError,
    SessionReadError,
    SessionRootCreateError,
    SessionWriteError,
)
from codeassistant.session.models import Session
from codeassistant.session.recorder import record_step
from codeassistant.session.store import SessionStore, archive_file_name


@pytest.fixture
def store(tmp_path):
    """A SessionStore with its storage layout already created."""
    s = SessionStore(tmp_path)
    assert s.ensure_storage_layout() is False
    return s


class TestStorageLayout:
    def test_creates_dirs(self, tmp_path):
        root = tmp_path / "project"
        exists = SessionStore(root).ensure_storage_layout()
        assert exists is False
        assert root.is_dir()
        assert history_dir_path(root).is_dir()

    def test_idempotent(self, store):
        assert store.ensure_storage_layout() is False
        assert store.ensure_storage_layout() is False

    def test_detects_session_file(self, store, tmp_path):
        session_file_path(tmp_path).write_text("{}")
        assert store.ensure_storage_layout() is True

    def test_root_create_failure(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(SessionRootCreateError):
            SessionStore(blocker / "sub").ensure_storage_layout()

    def test_history_create_failure(self, tmp_path):
        history_dir_path(tmp_path).write_text("in the way")
        with pytest.raises(SessionHistoryCreateError):
            SessionStore(tmp_path).ensure_storage_layout()


class TestStartSession:
    def test_start(self, store, tmp_path):
        session = store.start("Test Session")

        data = json.loads(session_file_path(tmp_path).read_text())
        assert data["name"] == "Test Session"
        assert data["id"] == session.id
        assert data["steps"] == []
        assert data["completed_at"] is None

    def test_start_without_prior_layout(self, tmp_path):
        root = tmp_path / "fresh"
        SessionStore(root).start("fresh")
        assert session_file_path(root).exists()
        assert history_dir_path(root).is_dir()

    def test_stable_field_order(self, store, tmp_path):
        store.start("ordered")
        data = json.loads(session_file_path(tmp_path).read_text())
        assert list(data) == ["id", "name", "created_at", "completed_at", "steps"]

    def test_unique_ids(self, tmp_path):
        a = SessionStore(tmp_path / "a").start("same")
        b = SessionStore(tmp_path / "b").start("same")
        assert a.id != b.id

    def test_already_exists(self, store):
        store.start("Duplicate Session")
        with pytest.raises(SessionExistsError):
            store.start("Duplicate Session")
        with pytest.raises(SessionExistsError):
            store.start("Another Name")

    def test_empty_name(self, store):
        with pytest.raises(SessionNameNotSpecifiedError):
            store.start("")

    def test_empty_dir(self):
        with pytest.raises(SessionDirNotSpecifiedError):
            SessionStore("").start("name")


class TestLoadSave:
    def test_load_missing(self, store):
        with pytest.raises(NoActiveSessionError):
            store.load()

    def test_load_corrupt(self, store, tmp_path):
        session_file_path(tmp_path).write_text("{not json")
        with pytest.raises(SessionParseError):
            store.load()

    def test_load_invalid_shape(self, store, tmp_path):
        session_file_path(tmp_path).write_text(json.dumps({"id": "x"}))
        with pytest.raises(SessionParseError):
            store.load()

    def test_load_unreadable(self, store, tmp_path):
        session_file_path(tmp_path).mkdir()
        with pytest.raises(SessionReadError):
            store.load()

    def test_round_trip(self, store):
        session = store.start("Round trip")
        record_step(store, session, "first", [store.root / "a.py"])
        record_step(store, session, "second", [store.root / "a.py", store.root / "b.py"], {"per_file": True})

        loaded = store.load()
        assert loaded == session
        assert loaded.model_dump() == session.model_dump()

    def test_save_leaves_no_temp_files(self, store, tmp_path):
        session = store.start("tidy")
        store.save(session)
        leftovers = [p.name for p in tmp_path.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_failed_save_keeps_previous_file(self, store, tmp_path, monkeypatch):
        session = store.start("keep me")
        before = session_file_path(tmp_path).read_text()

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)
        session.name = "changed"
        with pytest.raises(SessionWriteError):
            store.save(session)

        assert session_file_path(tmp_path).read_text() == before
        assert [p for p in tmp_path.iterdir() if p.name.endswith(".tmp")] == []

    def test_load_not_utf8(self, store, tmp_path):
        session_file_path(tmp_path).write_bytes(b'{"id": "\xff\xfe"}')
        with pytest.raises(SessionParseError):
            store.load()

    def test_end_not_utf8_keeps_file(self, store, tmp_path):
        session_file_path(tmp_path).write_bytes(b'{"id": "\xff\xfe"}')
        with pytest.raises(SessionParseError):
            store.end()
        assert session_file_path(tmp_path).exists()
        assert list(history_dir_path(tmp_path).iterdir()) == []

    def test_load_archive_not_utf8(self, store, tmp_path):
        archive = history_dir_path(tmp_path) / "20260101-000000_bad.json"
        archive.write_bytes(b"\xff\xfe")
        with pytest.raises(SessionParseError):
            store.load_archive(archive)


class TestEndSession:
    def test_end(self, store, tmp_path):
        store.start("Session to End")
        archive = store.end()

        assert not session_file_path(tmp_path).exists()
        archives = list(history_dir_path(tmp_path).iterdir())
        assert archives == [archive]

        data = json.loads(archive.read_text())
        assert data["name"] == "Session to End"
        assert data["completed_at"] is not None

        ended = Session.model_validate_json(archive.read_text())
        assert ended.completed_at > ended.created_at

    def test_archive_name(self, store):
        store.start("My Big Refactor")
        archive = store.end()
        assert re.fullmatch(r"\d{8}-\d{6}_my_big_refactor\.json", archive.name)

    def test_no_active_session(self, store, tmp_path):
        before = sorted(p.name for p in tmp_path.rglob("*"))
        with pytest.raises(NoActiveSessionError):
            store.end()
        assert sorted(p.name for p in tmp_path.rglob("*")) == before

    def test_no_active_session_without_layout(self, tmp_path):
        root = tmp_path / "never-started"
        with pytest.raises(NoActiveSessionError):
            SessionStore(root).end()
        assert not root.exists()

    def test_history_missing(self, store, tmp_path):
        store.start("Session to Archive Fail")
        history_dir_path(tmp_path).rmdir()

        with pytest.raises(HistoryMissingError):
            store.end()
        assert session_file_path(tmp_path).exists()

        # retry once the directory is back
        store.ensure_storage_layout()
        store.end()
        assert not session_file_path(tmp_path).exists()

    def test_archive_write_failure_keeps_active_file(self, store, tmp_path, monkeypatch):
        store.start("Archive Fails")
        before = session_file_path(tmp_path).read_text()

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(SessionArchiveError):
            store.end()

        assert session_file_path(tmp_path).read_text() == before
        assert list(history_dir_path(tmp_path).iterdir()) == []

        monkeypatch.undo()
        store.end()
        assert len(list(history_dir_path(tmp_path).iterdir())) == 1

    def test_delete_failure_removes_archive(self, store, tmp_path, monkeypatch):
        store.start("Delete Fails")
        real_unlink = Path.unlink

        def guarded_unlink(self, missing_ok=False):
            if self.name == SESSION_FILE_NAME:
                raise OSError("file busy")
            return real_unlink(self, missing_ok=missing_ok)

        monkeypatch.setattr(Path, "unlink", guarded_unlink)
        with pytest.raises(SessionDeleteError):
            store.end()

        assert session_file_path(tmp_path).exists()
        assert list(history_dir_path(tmp_path).iterdir()) == []

        monkeypatch.undo()
        store.end()
        assert len(list(history_dir_path(tmp_path).iterdir())) == 1

    def test_long_name_can_be_ended(self, store, tmp_path):
        store.start("x" * 300)
        archive = store.end()
        assert not session_file_path(tmp_path).exists()
        assert len(archive.name.encode()) < 255
        assert store.load_archive(archive).name == "x" * 300

    def test_nul_in_name_can_be_ended(self, store, tmp_path):
        store.start("bad\0name")
        archive = store.end()
        assert archive.name.endswith("_badname.json")
        assert not session_file_path(tmp_path).exists()

    def test_start_after_end(self, store):
        store.start("one")
        store.end()
        session = store.start("two")
        assert session.name == "two"

    def test_list_archives(self, store):
        assert store.list_archives() == []
        store.start("first")
        archive = store.end()
        assert store.list_archives() == [archive]
        assert store.load_archive(archive).name == "first"


class TestRecordStep:
    def test_sequential_ids(self, store):
        session = store.start("steps")
        ids = [record_step(store, session, f"prompt {i}", [store.root / "f.py"]).id for i in range(3)]
        assert ids == [1, 2, 3]
        assert [s.id for s in store.load().steps] == [1, 2, 3]

    def test_continues_from_last_step(self, store):
        session = store.start("resume")
        record_step(store, session, "one", [])
        record_step(store, session, "two", [])

        reloaded = store.load()
        step = record_step(store, reloaded, "three", [])
        assert step.id == 3

    def test_step_contents(self, store):
        session = store.start("contents")
        path = store.root / "src" / "main.py"
        step = record_step(store, session, "add logging", [path], {"revise": False})

        saved = store.load().steps[0]
        assert saved == step
        assert saved.command.prompt == "add logging"
        assert saved.command.applied_files == [str(path)]
        assert saved.command.flags == {"revise": False}
        assert saved.timestamp >= session.created_at

    def test_failed_save_not_recorded(self, store, monkeypatch):
        session = store.start("atomic")
        record_step(store, session, "ok", [])

        def broken_save(s):
            raise SessionWriteError("boom")

        monkeypatch.setattr(store, "save", broken_save)
        with pytest.raises(SessionWriteError):
            record_step(store, session, "lost", [])

        assert [s.id for s in session.steps] == [1]
        monkeypatch.undo()
        assert [s.id for s in store.load().steps] == [1]


class TestArchiveFileName:
    def test_safe_name(self):
        session = Session(name="Fix The Parser")
        assert archive_file_name(session).endswith("_fix_the_parser.json")
