"""Configuration and path layout for codeassistant."""

from pathlib import Path

SESSION_FILE_NAME = ".ca_session.json"
SESSION_HISTORY_DIR_NAME = ".ca_sessions"
SNAPSHOTS_DIR_NAME = ".ca_snapshots"

# Directory and file modes for session storage
SESSION_DIR_MODE = 0o750
SESSION_FILE_MODE = 0o600

# Sortable prefix for archived session files
ARCHIVE_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
# Filesystems cap names at 255 bytes; leave room for the stamp and suffix
MAX_ARCHIVE_NAME_BYTES = 200

# LLM defaults applied to unset fields
DEFAULT_LLM_PROVIDER = "openai"
DEFAULT_LLM_MODEL = "gpt-4"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_MAX_RETRIES = 3

# Hosted providers that refuse requests without an API key
PROVIDERS_REQUIRING_API_KEY = frozenset(
    {
        "openai",
        "anthropic",
        "azureopenai",
        "cohere",
        "google",
        "huggingface",
        "replicate",
        "mosaic",
        "promptlayer",
    }
)

# Provider names whose litellm prefix differs
LITELLM_PROVIDER_NAMES = {
    "azureopenai": "azure",
    "google": "gemini",
    "mosaic": "databricks",
}


def session_file_path(directory: Path) -> Path:
    """Path to the active session file for a working directory."""
    return Path(directory) / SESSION_FILE_NAME


def history_dir_path(directory: Path) -> Path:
    """Path to the archived sessions directory for a working directory."""
    return Path(directory) / SESSION_HISTORY_DIR_NAME


def snapshots_dir_path(directory: Path) -> Path:
    return Path(directory) / SNAPSHOTS_DIR_NAME
