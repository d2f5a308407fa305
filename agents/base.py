"""Abstract base class for model-backed agents."""

from abc import ABC, abstractmethod

from utils import llm
from utils.template_engine import render_prompt


class BaseAgent(ABC):
    """Base class that every model-backed agent must extend."""

    name = "base"
    description = "Base agent"
    prompt_name = ""  # file under agents/prompts/, without .txt

    def __init__(self, invoke=None):
        # None means the real model client, resolved at call time
        self._invoke = invoke

    @abstractmethod
    def run(self, *args, **kwargs):
        """Do the agent's single job and return its result."""

    def _call_llm(self, variables):
        """Render this agent's prompt template and send it to the model."""
        prompt = render_prompt(self.prompt_name, variables)
        invoke = self._invoke or llm.invoke
        return invoke(prompt)


def backend_lines(config):
    """Prompt lines describing the backend, empty for frontend-only projects."""
    if config.backend is None:
        return ""
    return (
        f"- Backend framework: {config.backend.framework}\n"
        f"- Database: {config.backend.database}\n"
    )
