"""Google-style docstring sections.

Only the parts refract uses are extracted: the summary paragraph, the
per-parameter descriptions (``Args:`` / ``Arguments:`` / ``Parameters:``)
and the ``Returns:`` text.
"""

from __future__ import annotations

import inspect
import re
from dataclasses import dataclass, field

_SECTION_RE = re.compile(r"^(\w[\w ]*):\s*$")
_ENTRY_RE = re.compile(r"^\*{0,2}(\w+)\s*(?:\([^)]*\))?\s*:\s*(.*)$")

_PARAM_SECTIONS = {"args", "arguments", "parameters", "params"}
_RETURN_SECTIONS = {"returns", "return", "yields"}


@dataclass
class Docstring:
    summary: str = ""
    params: dict[str, str] = field(default_factory=dict)
    returns: str = ""


def parse_docstring(text: str | None) -> Docstring:
    """Parse *text* into its summary, parameter and return descriptions."""
    if not text:
        return Docstring()

    lines = inspect.cleandoc(text).splitlines()
    doc = Docstring()

    summary: list[str] = []
    idx = 0
    while idx < len(lines) and not _SECTION_RE.match(lines[idx]):
        stripped = lines[idx].strip()
        if stripped:
            summary.append(stripped)
        elif summary:
            break
        idx += 1
    doc.summary = " ".join(summary)

    section = ""
    current = ""
    entry_indent = -1
    for line in lines[idx:]:
        stripped = line.strip()
        if not stripped:
            continue
        header = _SECTION_RE.match(line)
        if header and _indent(line) == 0:
            section = header.group(1).lower()
            current = ""
            entry_indent = -1
            continue
        if section in _PARAM_SECTIONS:
            if entry_indent < 0:
                entry_indent = _indent(line)
            entry = _ENTRY_RE.match(stripped)
            # Deeper lines continue the previous entry.
            if entry and _indent(line) <= entry_indent:
                current = entry.group(1)
                doc.params[current] = entry.group(2).strip()
            elif current:
                doc.params[current] = f"{doc.params[current]} {stripped}".strip()
        elif section in _RETURN_SECTIONS:
            doc.returns = f"{doc.returns} {stripped}".strip()
    return doc


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())
