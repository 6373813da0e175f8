"""Generate and apply AI modifications to files."""

import difflib
from pathlib import Path

from codeassistant.editor.prompts import (
    build_file_prompt,
    build_multi_file_prompt,
    parse_file_response,
    parse_multi_file_response,
)
from codeassistant.errors import FileReadError, FileWriteError
from codeassistant.llm import LLMConfig, generate
from codeassistant.logging import get_logger

_logger = get_logger(__name__)


def read_files(files: list[Path]) -> dict[Path, str]:
    """Read current contents of each file."""
    contents: dict[Path, str] = {}
    for file in files:
        try:
            contents[file] = file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FileReadError(f"failed to read file {file}: {e}") from e
    return contents


def generate_modifications(
    config: LLMConfig,
    prompt: str,
    originals: dict[Path, str],
    per_file: bool = False,
) -> dict[Path, str]:
    """Ask the LLM for replacement contents of every file in ``originals``.

    With ``per_file`` each file gets its own request; otherwise all files are
    sent together so the model sees them side by side.
    """
    if per_file or len(originals) == 1:
        modifications = {}
        for path, content in originals.items():
            response = generate(config, build_file_prompt(prompt, path, content))
            modifications[path] = parse_file_response(response, content)
        return modifications

    response = generate(config, build_multi_file_prompt(prompt, originals))
    return parse_multi_file_response(response, originals)


def apply_modifications(modifications: dict[Path, str]) -> None:
    for file, content in modifications.items():
        try:
            file.write_text(content, encoding="utf-8")
        except OSError as e:
            raise FileWriteError(f"failed to write changes to {file}: {e}") from e
        _logger.debug("File written", path=str(file))


def render_diff(path: Path | str, before: str, after: str) -> str:
    """Unified diff between two versions of a file."""
    return "".join(
        difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
        )
    )
