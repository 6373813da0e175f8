"""Session data models."""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Command(BaseModel):
    """The modification command a step recorded."""

    prompt: str
    flags: dict[str, bool] = Field(default_factory=dict)
    applied_files: list[str] = Field(default_factory=list, description="Absolute paths acted upon")


class Step(BaseModel):
    """One recorded prompt+files modification within a session."""

    id: int = Field(ge=1)
    command: Command
    timestamp: datetime = Field(default_factory=utcnow)


class Session(BaseModel):
    """A unit of AI-assisted editing work, bounded by start and end."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    steps: list[Step] = Field(default_factory=list)

    @property
    def next_step_id(self) -> int:
        return self.steps[-1].id + 1 if self.steps else 1

    def get_step(self, step_id: int) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    @property
    def last_step(self) -> Step | None:
        return self.steps[-1] if self.steps else None
