"""Split one raw model completion into explanation, code and diagram source."""

from __future__ import annotations

import re
from dataclasses import dataclass

from config.defaults import DEFAULTS

DIAGRAM_LABELS = ("mermaid", "mmd")

_FENCE_RE = re.compile(r"```[^\s`]*[\s\S]*?```")
_DIAGRAM_FENCE_RE = re.compile(
    r"```(?:" + "|".join(DIAGRAM_LABELS) + r")(?=\s)[\s\S]*?```", re.IGNORECASE
)
_FIRST_DIAGRAM_RE = re.compile(
    r"```(?:" + "|".join(DIAGRAM_LABELS) + r")[ \t]*\n([\s\S]*?)```", re.IGNORECASE
)
_DECLARATION_RE = re.compile(
    r"^(graph|flowchart|sequenceDiagram|classDiagram|stateDiagram(?:-v2)?|erDiagram"
    r"|gantt|pie|journey)\b",
    re.IGNORECASE,
)
_LABEL_JUNK_RE = re.compile(r"[()\":']")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ExtractedResponse:
    explanation: str
    code: str | None
    diagram: str | None


def extract_text(full_text):
    """Return the prose of a completion with every fenced block removed.

    When the completion is nothing but code, fall back to its first paragraph
    unless that paragraph itself opens a fence.
    """
    if not full_text:
        return ""
    cleaned = _FENCE_RE.sub("", full_text).strip()
    if not cleaned:
        first_paragraph = full_text.split("\n\n")[0].strip()
        if first_paragraph and "```" not in first_paragraph:
            return first_paragraph
    return cleaned


def extract_code(full_text):
    """Concatenate the bodies of all non-diagram fenced blocks, in order."""
    if not full_text:
        return None
    remaining = _DIAGRAM_FENCE_RE.sub("", full_text)
    blocks = [_fence_body(m.group(0)) for m in _FENCE_RE.finditer(remaining)]
    code = "\n\n".join(blocks).strip()
    return code or None


def _fence_body(block):
    inner = block[3:-3]
    newline = inner.find("\n")
    if newline == -1:
        # ```code``` on a single line: everything is body
        return inner.strip()
    return inner[newline + 1:].rstrip()


def extract_diagram(full_text):
    """Return the sanitized body of the first diagram-labelled block, or None."""
    if not full_text:
        return None
    match = _FIRST_DIAGRAM_RE.search(full_text)
    if not match:
        return None
    lines = [sanitize_label(line) for line in match.group(1).strip().split("\n")]
    source = "\n".join(lines).strip()
    if not source:
        return None
    return ensure_declaration(source)


def sanitize_label(line):
    """Strip characters the renderer chokes on and collapse whitespace."""
    return _WHITESPACE_RE.sub(" ", _LABEL_JUNK_RE.sub("", line)).strip()


def has_declaration(source):
    return bool(_DECLARATION_RE.match(source.lstrip()))


def ensure_declaration(source):
    """Prefix the default flowchart declaration when none is present."""
    if has_declaration(source):
        return source
    return f"{DEFAULTS['diagram_declaration']}\n{source}"


def extract_response(full_text) -> ExtractedResponse:
    """Never raises: a missing construct becomes None (or "" for the prose)."""
    full_text = (full_text or "").strip()
    return ExtractedResponse(
        explanation=extract_text(full_text),
        code=extract_code(full_text),
        diagram=extract_diagram(full_text),
    )
