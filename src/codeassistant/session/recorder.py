"""Append modification steps to the active session."""

from pathlib import Path

from codeassistant.logging import get_logger
from codeassistant.session.models import Command, Session, Step
from codeassistant.session.store import SessionStore

_logger = get_logger(__name__)


def record_step(
    store: SessionStore,
    session: Session,
    prompt: str,
    files: list[Path],
    flags: dict[str, bool] | None = None,
) -> Step:
    """Append a step to ``session`` and persist it.

    The step only counts as recorded once the save succeeds; on failure it is
    dropped from the in-memory session and the error propagates.
    """
    step = Step(
        id=session.next_step_id,
        command=Command(
            prompt=prompt,
            flags=flags or {},
            applied_files=[str(f) for f in files],
        ),
    )
    session.steps.append(step)
    try:
        store.save(session)
    except Exception:
        session.steps.pop()
        raise

    _logger.info("Step recorded", session=session.id, step=step.id, files=len(files))
    return step
