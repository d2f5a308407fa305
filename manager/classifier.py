"""Project classifier: ask the model for a ProjectConfig, fall back to the default."""

import json
import logging

from core.errors import InvalidConfigError
from core.state import ProjectConfig
from utils import llm
from utils.folder_naming import extract_project_name
from utils.template_engine import render_prompt

logger = logging.getLogger(__name__)


def find_json_object(text):
    """Return the first balanced {...} substring of text, or None.

    Braces inside JSON string literals are ignored so that a description like
    "uses {curly} braces" does not end the object early.
    """
    if not text:
        return None
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def parse_project_config(text, fallback_name="generated-project"):
    """Parse a classifier completion. Raises InvalidConfigError on any mismatch."""
    candidate = find_json_object(text)
    if candidate is None:
        raise InvalidConfigError("No JSON object in classification response")
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Classification response is not valid JSON: {e}") from e
    return ProjectConfig.from_dict(data, fallback_name=fallback_name)


def classify(request, invoke=None):
    """Derive a ProjectConfig for the request with one model call.

    Classification never blocks generation: a transport error, a non-JSON
    answer or a schema mismatch all yield ProjectConfig.default().
    """
    invoke = invoke or llm.invoke
    response = invoke(render_prompt("classifier", {"request": request}))
    if response.error:
        logger.info("Classification call failed (%s); using default config", response.error)
        return ProjectConfig.default()
    try:
        return parse_project_config(
            response.raw_text,
            fallback_name=extract_project_name(request).replace("_", "-"),
        )
    except InvalidConfigError as e:
        logger.info("Unusable classification (%s); using default config", e)
        return ProjectConfig.default()
