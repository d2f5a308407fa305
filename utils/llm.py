"""Claude API client: one text prompt in, one text completion out."""

import logging
import os
from dataclasses import dataclass

import anthropic

from config.defaults import DEFAULTS

logger = logging.getLogger(__name__)

MAX_TOKENS = DEFAULTS["max_tokens"]


@dataclass(frozen=True)
class ModelResponse:
    raw_text: str = ""
    error: str | None = None

    @property
    def ok(self):
        return self.error is None


def get_model():
    return os.environ.get("APPFORGE_MODEL") or DEFAULTS["model"]


def get_client():
    """Return an Anthropic client. Raises if no API key is set."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError(
            "ANTHROPIC_API_KEY environment variable is not set. "
            "Get a key at https://console.anthropic.com/ and run:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'"
        )
    return anthropic.Anthropic(api_key=api_key)


def invoke(prompt, system_prompt=""):
    """Send one prompt and return a ModelResponse. Never raises.

    Transport failures, non-success statuses and unreadable provider payloads
    all come back as ``ModelResponse(error=...)``. There is no retry.
    """
    try:
        client = get_client()
        text = ""
        kwargs = {
            "model": get_model(),
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        # Streaming avoids the SDK timeout on large max_tokens
        with client.messages.stream(**kwargs) as stream:
            for chunk in stream.text_stream:
                text += chunk
            final = stream.get_final_message()
        if final.stop_reason == "max_tokens":
            logger.warning("Completion hit the token limit; code may be incomplete")
        return ModelResponse(raw_text=text.strip())
    except anthropic.APIStatusError as e:
        logger.warning("Model call failed with status %s: %s", e.status_code, e.message)
        return ModelResponse(error=e.message or f"Model call failed ({e.status_code})")
    except anthropic.APIError as e:
        logger.warning("Model call failed: %s", e)
        return ModelResponse(error=str(e) or "Failed to generate content")
    except RuntimeError as e:
        logger.warning("Model client unavailable: %s", e)
        return ModelResponse(error=str(e))
