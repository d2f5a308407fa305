"""Generator agent: asks the model for explanation, code and diagram in one go."""

import json

from agents.base import BaseAgent, backend_lines
from config.defaults import DEFAULTS
from utils.template_engine import render_prompt


def build_request_prompt(prompt, features=None):
    """Wrap the user's words with the feature toggles picked in the prompt panel."""
    features = list(features) if features else list(DEFAULTS["default_features"])
    return render_prompt("request", {"prompt": prompt.strip(), "features": ", ".join(features)})


class GeneratorAgent(BaseAgent):
    """Turns a request plus its ProjectConfig into one raw model completion."""

    name = "generator"
    description = "Generates the application explanation, code and flow diagram"
    prompt_name = "generator"

    def run(self, request, config):
        frontend = config.frontend
        framework = frontend.framework if frontend else "react"
        variables = {
            "request": request,
            "kind": config.kind,
            "language": config.language,
            "framework": framework,
            "styling": frontend.styling if frontend else "tailwind",
            "features": json.dumps(sorted(frontend.features) if frontend else []),
            "backend_lines": backend_lines(config),
            "name": config.name,
            "routing": "App Router for Next.js" if framework == "nextjs" else "React Router for React",
        }
        return self._call_llm(variables)
