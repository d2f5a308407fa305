"""Tests for utils.llm: the Anthropic client is mocked."""

from unittest.mock import MagicMock, patch

import anthropic

from utils import llm


def _client(chunks, stop_reason="end_turn"):
    stream = MagicMock()
    stream.text_stream = iter(chunks)
    stream.get_final_message.return_value = MagicMock(stop_reason=stop_reason)
    stream.__enter__.return_value = stream
    client = MagicMock()
    client.messages.stream.return_value = stream
    return client


def test_invoke_joins_stream():
    client = _client(["Hello", ", ", "world\n"])
    with patch("utils.llm.get_client", return_value=client):
        response = llm.invoke("say hi", system_prompt="be brief")
    assert response.ok
    assert response.raw_text == "Hello, world"
    kwargs = client.messages.stream.call_args.kwargs
    assert kwargs["messages"] == [{"role": "user", "content": "say hi"}]
    assert kwargs["system"] == "be brief"
    assert kwargs["max_tokens"] == llm.MAX_TOKENS


def test_invoke_omits_empty_system_prompt():
    client = _client(["x"])
    with patch("utils.llm.get_client", return_value=client):
        llm.invoke("p")
    assert "system" not in client.messages.stream.call_args.kwargs


def test_truncation_still_returns_text(caplog):
    with patch("utils.llm.get_client", return_value=_client(["partial"], stop_reason="max_tokens")):
        response = llm.invoke("long")
    assert response.raw_text == "partial"
    assert "token limit" in caplog.text


def test_status_error_becomes_response():
    client = MagicMock()
    client.messages.stream.side_effect = anthropic.APIStatusError(
        "Overloaded", response=MagicMock(status_code=529), body=None)
    with patch("utils.llm.get_client", return_value=client):
        response = llm.invoke("p")
    assert not response.ok
    assert response.error == "Overloaded"
    assert response.raw_text == ""


def test_connection_error_becomes_response():
    client = MagicMock()
    client.messages.stream.side_effect = anthropic.APIConnectionError(request=MagicMock())
    with patch("utils.llm.get_client", return_value=client):
        response = llm.invoke("p")
    assert not response.ok
    assert response.error


def test_missing_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    response = llm.invoke("p")
    assert "ANTHROPIC_API_KEY" in response.error


def test_model_override(monkeypatch):
    monkeypatch.setenv("APPFORGE_MODEL", "claude-test")
    assert llm.get_model() == "claude-test"
    monkeypatch.delenv("APPFORGE_MODEL")
    assert llm.get_model() == llm.DEFAULTS["model"]
