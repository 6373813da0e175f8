from codeassistant.session.models import Command, Session, Step
from codeassistant.session.recorder import record_step
from codeassistant.session.store import SessionStore

__all__ = ["Command", "Session", "SessionStore", "Step", "record_step"]
