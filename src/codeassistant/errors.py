"""Error types raised by codeassistant."""


class CodeAssistantError(Exception):
    """Base class for all codeassistant errors."""


class ConfigError(CodeAssistantError):
    """LLM configuration is missing a required field."""


class MissingPromptError(CodeAssistantError):
    pass


class NoFilesSpecifiedError(CodeAssistantError):
    pass


# ── Path validation ──────────────────────────────────────────────


class PathValidationError(CodeAssistantError):
    pass


class PathOutsideWorkdirError(PathValidationError):
    """File resolves to a location outside the working directory."""


class PathResolveError(PathValidationError):
    """File path could not be turned into an absolute path."""


# ── File modification ────────────────────────────────────────────


class FileModificationError(CodeAssistantError):
    pass


class FileReadError(FileModificationError):
    pass


class FileWriteError(FileModificationError):
    pass


# ── LLM ──────────────────────────────────────────────────────────


class LLMError(CodeAssistantError):
    """The LLM provider call failed."""


class LLMResponseError(LLMError):
    """The LLM answered, but not in a usable shape."""


# ── Sessions ─────────────────────────────────────────────────────


class SessionError(CodeAssistantError):
    pass


class SessionDirNotSpecifiedError(SessionError):
    pass


class SessionNameNotSpecifiedError(SessionError):
    pass


class SessionExistsError(SessionError):
    """A session is already in progress in this directory."""


class NoActiveSessionError(SessionError):
    """No active session file in this directory."""


class HistoryMissingError(SessionError):
    """The session history directory does not exist."""


class SessionRootCreateError(SessionError):
    pass


class SessionHistoryCreateError(SessionError):
    pass


class SessionExistenceCheckError(SessionError):
    pass


class SessionReadError(SessionError):
    pass


class SessionParseError(SessionError):
    pass


class SessionWriteError(SessionError):
    pass


class SessionArchiveError(SessionError):
    pass


class SessionDeleteError(SessionError):
    pass


class StepNotFoundError(SessionError):
    pass


class SnapshotMissingError(SessionError):
    pass
