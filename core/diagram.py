"""Diagram validation, normalization and fallback rendering."""

from __future__ import annotations

import base64
import http.client
import itertools
import logging
import os
import re
import urllib.request
from dataclasses import dataclass

from core.errors import DiagramRenderError
from core.extractor import ensure_declaration, has_declaration

logger = logging.getLogger(__name__)

FALLBACK_DIAGRAM = "graph TD\n  A[Start] --> B[End]"

# Shown when even the fallback diagram cannot be rendered.
FALLBACK_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="240" height="60" viewBox="0 0 240 60">'
    '<rect x="1" y="1" width="238" height="58" rx="6" fill="#fff4f4" stroke="#d33"/>'
    '<text x="120" y="35" text-anchor="middle" font-family="monospace" font-size="13" fill="#a00">'
    "Diagram unavailable</text></svg>"
)

_RENDER_ID_RE = re.compile(r"\bdiagram-\d+\b")
_PAIRS = {"]": "[", ")": "(", "}": "{"}
# erDiagram crow's-foot links such as ||--o{ or }|..|{
_ER_LINK_RE = re.compile(r"[|}o]{2}(?:--|\.\.)[|{o]{2}")


def normalize_definition(candidate):
    """None for empty input (nothing generated yet), else a declared definition."""
    if candidate is None or not candidate.strip():
        return None
    return ensure_declaration(candidate.strip())


def normalize_svg(svg):
    """Drop per-render element ids so two renders of one definition compare equal."""
    return _RENDER_ID_RE.sub("diagram", svg)


def fallback_for_config(config):
    """A plausible architecture diagram when the model produced none."""
    if config is None or config.kind == "frontend":
        return (
            "graph TD\n"
            "  A[User] --> B[Frontend App]\n"
            "  B --> C[Components]\n"
            "  C --> D[State Management]\n"
            "  D --> C\n"
            "  C --> E[API Services]\n"
            "  E --> F[External APIs]\n"
            "  F --> E\n"
            "  E --> C"
        )
    database = config.backend.database if config.backend else "none"
    if config.kind == "fullstack":
        return (
            "graph TD\n"
            "  A[User] --> B[Frontend - " + config.frontend.framework + "]\n"
            "  B --> C[API Routes]\n"
            "  C --> D[Backend - " + config.backend.framework + "]\n"
            "  D --> E[Database - " + database + "]\n"
            "  E --> D\n"
            "  D --> C\n"
            "  C --> B"
        )
    return (
        "graph TD\n"
        "  A[Client Request] --> B[API Routes]\n"
        "  B --> C[Controllers]\n"
        "  C --> D[Services]\n"
        "  D --> E[Database - " + database + "]\n"
        "  E --> D\n"
        "  D --> C\n"
        "  C --> B\n"
        "  B --> F[Client Response]"
    )


class MermaidInkRenderer:
    """Renders through a mermaid.ink-compatible HTTP service.

    parse() is a local structural check so malformed input fails before any
    network round trip.
    """

    def __init__(self, base_url=None, timeout=15):
        self.base_url = (base_url or os.environ.get("APPFORGE_MERMAID_URL") or "https://mermaid.ink").rstrip("/")
        self.timeout = timeout

    def parse(self, definition):
        if not has_declaration(definition):
            raise DiagramRenderError("Diagram has no type declaration")
        flow = definition.lstrip().lower().startswith(("graph", "flowchart"))
        stack = []
        previous = ""
        for ch in _ER_LINK_RE.sub(" ", definition):
            if ch in "[({":
                stack.append(ch)
            elif ch == ">" and flow and not stack and (previous.isalnum() or previous == "_"):
                # asymmetric node shape: id>label]
                stack.append("[")
            elif ch in _PAIRS:
                if not stack or stack.pop() != _PAIRS[ch]:
                    raise DiagramRenderError(f"Unbalanced '{ch}' in diagram")
            previous = ch
        if stack:
            raise DiagramRenderError(f"Unclosed '{stack[-1]}' in diagram")

    def render(self, render_id, definition):
        encoded = base64.urlsafe_b64encode(definition.encode("utf-8")).decode("ascii")
        url = f"{self.base_url}/svg/{encoded}"
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as resp:
                svg = resp.read().decode("utf-8")
        except (OSError, http.client.HTTPException, UnicodeDecodeError) as e:
            raise DiagramRenderError(f"Diagram service unavailable: {e}") from e
        if "<svg" not in svg:
            raise DiagramRenderError("Diagram service returned no SVG")
        return svg.replace("<svg", f'<svg data-render-id="{render_id}"', 1)


@dataclass(frozen=True)
class DiagramOutcome:
    status: str                 # empty|rendered|fallback
    source: str | None = None   # definition actually rendered
    svg: str = ""
    error: str | None = None
    render_id: str | None = None

    @property
    def is_empty(self):
        return self.status == "empty"


class DiagramValidator:
    """Normalizes a candidate definition and renders it, never leaving the panel blank."""

    def __init__(self, renderer=None):
        self.renderer = renderer or MermaidInkRenderer()
        self._ids = itertools.count(1)

    def _render(self, definition):
        render_id = f"diagram-{next(self._ids)}"
        self.renderer.parse(definition)
        return render_id, self.renderer.render(render_id, definition)

    def render(self, candidate) -> DiagramOutcome:
        definition = normalize_definition(candidate)
        if definition is None:
            return DiagramOutcome(status="empty")
        try:
            render_id, svg = self._render(definition)
            return DiagramOutcome(status="rendered", source=definition, svg=svg, render_id=render_id)
        except DiagramRenderError as e:
            error = str(e)
            logger.warning("Diagram render failed, using fallback: %s", error)

        try:
            render_id, svg = self._render(FALLBACK_DIAGRAM)
        except DiagramRenderError as e:
            logger.warning("Fallback diagram render failed too: %s", e)
            render_id, svg = None, FALLBACK_SVG
        return DiagramOutcome(
            status="fallback",
            source=FALLBACK_DIAGRAM,
            svg=svg,
            error=f"Could not render the generated diagram: {error}",
            render_id=render_id,
        )
