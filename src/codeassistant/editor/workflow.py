"""The code and rollback commands, independent of the CLI."""

from dataclasses import dataclass, field
from pathlib import Path

from codeassistant.editor.modifier import (
    apply_modifications,
    generate_modifications,
    read_files,
)
from codeassistant.editor.paths import validate_file_paths
from codeassistant.errors import (
    CodeAssistantError,
    MissingPromptError,
    NoFilesSpecifiedError,
    StepNotFoundError,
)
from codeassistant.llm import LLMConfig
from codeassistant.logging import get_logger
from codeassistant.session.models import Step
from codeassistant.session.recorder import record_step
from codeassistant.session.snapshots import read_snapshot, restore_files, snapshot_files
from codeassistant.session.store import SessionStore

_logger = get_logger(__name__)


@dataclass
class CodeResult:
    """Outcome of a code command. ``step`` is None for dry runs."""

    current: dict[Path, str]
    modifications: dict[Path, str]
    step: Step | None = None
    changed: list[Path] = field(default_factory=list)


def run_code_command(
    workdir: Path,
    config: LLMConfig,
    prompt: str,
    files: list[Path | str],
    per_file: bool = False,
    dry_run: bool = False,
    revise: bool = False,
) -> CodeResult:
    """Modify ``files`` according to ``prompt`` and record the change as a step.

    Paths are validated before any file or session I/O. When revising, the
    previous step's files are re-generated from their pre-step snapshot and a
    new step is recorded on top.
    """
    if not prompt:
        raise MissingPromptError("prompt not specified")

    paths = validate_file_paths(workdir, files)
    if not paths and not revise:
        raise NoFilesSpecifiedError("files must be specified")

    store = SessionStore(workdir)
    session = store.load()

    if revise:
        previous = session.last_step
        if previous is None:
            raise StepNotFoundError("no previous step to revise")
        previous_files = [Path(p) for p in previous.command.applied_files]
        if not paths:
            paths = previous_files
        current = read_files(paths)
        base = {
            p: read_snapshot(workdir, session.id, previous.id, p) if p in previous_files else current[p]
            for p in paths
        }
    else:
        current = read_files(paths)
        base = current

    modifications = generate_modifications(config, prompt, base, per_file=per_file)
    changed = [p for p, content in modifications.items() if content != current[p]]

    if dry_run:
        return CodeResult(current=current, modifications=modifications, changed=changed)

    step_id = session.next_step_id
    snapshot_files(workdir, session.id, step_id, paths)
    try:
        apply_modifications(modifications)
        step = record_step(
            store,
            session,
            prompt,
            paths,
            flags={"per_file": per_file, "revise": revise},
        )
    except CodeAssistantError as e:
        _logger.warning("Step failed, restoring files", step=step_id, error=str(e))
        try:
            restore_files(workdir, session.id, step_id, paths)
        except CodeAssistantError as restore_error:
            raise restore_error from e
        raise

    return CodeResult(current=current, modifications=modifications, step=step, changed=changed)


def rollback_step(workdir: Path, step_id: int) -> list[Path]:
    """Restore the files touched by ``step_id`` to their pre-step contents."""
    store = SessionStore(workdir)
    session = store.load()
    step = session.get_step(step_id)
    if step is None:
        raise StepNotFoundError(f"step {step_id} not found in session {session.name!r}")

    files = [Path(p) for p in step.command.applied_files]
    return restore_files(workdir, session.id, step.id, files)
