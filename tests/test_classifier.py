"""Tests for manager.classifier: model calls are scripted."""

import pytest

from core.errors import InvalidConfigError
from core.state import ProjectConfig
from manager.classifier import classify, find_json_object, parse_project_config
from utils.llm import ModelResponse


def _answer(text=None, error=None):
    def invoke(prompt, system_prompt=""):
        invoke.prompt = prompt
        return ModelResponse(raw_text=text or "", error=error)
    return invoke


FULLSTACK = """Sure! Here's the config:
```json
{
  "type": "fullstack",
  "language": "TypeScript",
  "frontend": {"framework": "React", "styling": "tailwind", "features": ["auth"]},
  "backend": {"framework": "express", "database": "postgres"},
  "name": "bookstore",
  "description": "A bookstore"
}
```"""


# --- find_json_object ---

def test_find_json_ignores_braces_in_strings():
    assert find_json_object('prefix {"a": "b}"} suffix') == '{"a": "b}"}'


def test_find_json_nested():
    assert find_json_object('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'


def test_find_json_skips_unbalanced_opening():
    assert find_json_object('{ broken {"a": 1}') == '{"a": 1}'


def test_find_json_none():
    assert find_json_object("no json here") is None
    assert find_json_object("") is None


# --- parse_project_config ---

def test_parse_rejects_non_json():
    with pytest.raises(InvalidConfigError):
        parse_project_config("I think React would be great")


def test_parse_rejects_missing_frontend():
    with pytest.raises(InvalidConfigError):
        parse_project_config('{"type": "frontend", "language": "javascript", "name": "x"}')


def test_parse_rejects_unknown_type():
    with pytest.raises(InvalidConfigError):
        parse_project_config('{"type": "mobile", "language": "javascript", "name": "x"}')


# --- classify ---

def test_classify_fullstack():
    config = classify("bookstore with postgres", invoke=_answer(FULLSTACK))
    assert config.kind == "fullstack"
    assert config.frontend.framework == "react"
    assert config.backend.database == "postgres"
    assert config.frontend.features == frozenset({"auth"})


def test_classify_normalizes_case():
    config = classify("bookstore", invoke=_answer(FULLSTACK))
    assert config.language == "typescript"
    assert config.name == "bookstore"


def test_classify_prompt_carries_request():
    invoke = _answer(FULLSTACK)
    classify("bookstore with postgres", invoke=invoke)
    assert "bookstore with postgres" in invoke.prompt


def test_classify_transport_error_gives_default():
    assert classify("anything", invoke=_answer(error="boom")) == ProjectConfig.default()


def test_classify_garbage_gives_default():
    assert classify("anything", invoke=_answer("I would use React.")) == ProjectConfig.default()


def test_classify_schema_mismatch_gives_default():
    text = '{"type": "backend", "language": "javascript", "name": "api"}'
    assert classify("anything", invoke=_answer(text)) == ProjectConfig.default()


def test_classify_missing_name_uses_request_words():
    text = ('{"type": "backend", "language": "javascript", '
            '"backend": {"framework": "express"}}')
    config = classify("bookstore inventory tracker", invoke=_answer(text))
    assert config.name == "bookstore-inventory-tracker"
    assert config.backend.database == "none"
    assert config.frontend is None
