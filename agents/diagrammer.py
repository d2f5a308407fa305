"""Diagram agent: follow-up call when the main completion carried no diagram."""

import logging

from agents.base import BaseAgent, backend_lines
from core.extractor import ensure_declaration, extract_diagram, has_declaration, sanitize_label

logger = logging.getLogger(__name__)


class DiagramAgent(BaseAgent):
    name = "diagrammer"
    description = "Draws a Mermaid flow diagram of generated code"
    prompt_name = "diagram"

    def run(self, config, code):
        """Return a diagram definition, or None if the model gave nothing usable."""
        response = self._call_llm({
            "kind": config.kind,
            "framework": config.frontend.framework if config.frontend else "none",
            "backend_lines": backend_lines(config),
            "code": code or "No code generated.",
        })
        if response.error:
            logger.warning("Diagram follow-up failed: %s", response.error)
            return None

        diagram = extract_diagram(response.raw_text)
        if diagram is None and has_declaration(response.raw_text):
            # model skipped the fence but the text itself is a diagram
            lines = [sanitize_label(line) for line in response.raw_text.strip().split("\n")]
            diagram = ensure_declaration("\n".join(lines).strip())
        return diagram
