"""Prompt composition and response parsing for file edits."""

import re
from pathlib import Path

from codeassistant.errors import LLMResponseError

FILE_MARKER = "=== FILE: {path} ==="

_FENCE_RE = re.compile(r"^\s*```[\w+.-]*\n(.*?)\n?```\s*$", re.DOTALL)
_MARKER_RE = re.compile(r"^=== FILE: (.+?) ===[ \t]*$", re.MULTILINE)

SINGLE_FILE_TEMPLATE = """\
Apply the following change to the file `{path}`.

Instruction:
{prompt}

Current contents of `{path}`:
```
{content}
```

Reply with the complete updated contents of the file and nothing else.
"""

MULTI_FILE_TEMPLATE = """\
Apply the following change across the files below.

Instruction:
{prompt}

{files}

Reply with the complete updated contents of every file listed above. Start
each file with a line of the form `=== FILE: <path> ===` using the exact path
shown, followed by the contents. Do not add any other text.
"""


def build_file_prompt(prompt: str, path: Path, content: str) -> str:
    return SINGLE_FILE_TEMPLATE.format(prompt=prompt, path=path, content=content)


def build_multi_file_prompt(prompt: str, files: dict[Path, str]) -> str:
    sections = [
        f"{FILE_MARKER.format(path=path)}\n{content}" for path, content in files.items()
    ]
    return MULTI_FILE_TEMPLATE.format(prompt=prompt, files="\n\n".join(sections))


def strip_code_fence(text: str) -> str:
    """Remove a single markdown code fence wrapping the whole text, if any."""
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def parse_file_response(text: str, original: str | None = None) -> str:
    """Strip a wrapping fence and keep ``original``'s final-newline convention."""
    content = strip_code_fence(text)
    if original and not original.endswith("\n"):
        return content.rstrip("\n")
    if not content.endswith("\n"):
        content += "\n"
    return content


def parse_multi_file_response(text: str, originals: dict[Path, str]) -> dict[Path, str]:
    """Split a ``=== FILE: <path> ===`` delimited response into per-file contents."""
    markers = list(_MARKER_RE.finditer(text))
    sections: dict[str, str] = {}
    for i, marker in enumerate(markers):
        end = markers[i + 1].start() if i + 1 < len(markers) else len(text)
        body = text[marker.end():end].strip("\n")
        sections[marker.group(1).strip()] = body

    result: dict[Path, str] = {}
    for path, original in originals.items():
        if str(path) not in sections:
            raise LLMResponseError(f"response is missing contents for {path}")
        result[path] = parse_file_response(sections[str(path)], original)
    return result
