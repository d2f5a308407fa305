"""Generation pipeline: classify → assemble prompt → generate → extract → diagram."""

import logging

from agents.diagrammer import DiagramAgent
from agents.generator import GeneratorAgent, build_request_prompt
from core.diagram import fallback_for_config
from core.extractor import extract_response
from core.state import GenerationResult, RequestContext
from manager.classifier import classify

logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs one generation request end to end and returns a GenerationResult.

    The four outputs fail independently: a bad classification becomes the
    default config, a missing diagram becomes a follow-up call and then a
    config-derived diagram. Only a failed generation call fails the result.
    """

    def __init__(self, invoke=None, follow_up_diagram=True):
        self.invoke = invoke
        self.follow_up_diagram = follow_up_diagram
        self.generator = GeneratorAgent(invoke=invoke)
        self.diagrammer = DiagramAgent(invoke=invoke)

    def classify(self, request):
        return classify(request, invoke=self.invoke)

    def run(self, ctx: RequestContext) -> GenerationResult:
        request = build_request_prompt(ctx.prompt, ctx.features)
        config = self.classify(request)

        response = self.generator.run(request, config)
        if response.error:
            logger.warning("Generation %s failed: %s", ctx.request_id, response.error)
            return GenerationResult(request_id=ctx.request_id, config=config, failure=response.error)

        extracted = extract_response(response.raw_text)
        diagram = extracted.diagram
        if diagram is None and extracted.code and self.follow_up_diagram:
            diagram = self.diagrammer.run(config, extracted.code)
        if diagram is None:
            diagram = fallback_for_config(config)

        return GenerationResult(
            request_id=ctx.request_id,
            explanation=extracted.explanation,
            raw_code=extracted.code,
            diagram_source=diagram,
            config=config,
        )

    def generate(self, prompt, features=()):
        """Convenience for callers without a workspace (CLI)."""
        return self.run(RequestContext(prompt=prompt, features=tuple(features)))
