"""Tests for core.terminal."""

from unittest.mock import MagicMock

import pytest

from core.errors import WorkspaceError
from core.events import EventBus, EventType
from core.terminal import TerminalMonitor, find_server_url


@pytest.mark.parametrize("text,url", [
    ("Local: http://localhost:3000", "http://localhost:3000"),
    ("\x1b[32mready\x1b[0m at \x1b[36mhttp://127.0.0.1:5173/\x1b[0m", "http://127.0.0.1:5173/"),
    ("Server listening on http://0.0.0.0:8080.", "http://0.0.0.0:8080"),
    ("see https://example.com for docs", None),
    ("compiling...", None),
])
def test_find_server_url(text, url):
    assert find_server_url(text) == url


def test_feed_announces_url_once():
    bus = EventBus()
    seen = []
    bus.subscribe(EventType.EXTERNAL_PROCESS_OUTPUT, seen.append)
    monitor = TerminalMonitor(bus)
    assert monitor.feed("starting") is None
    assert monitor.feed("Local: http://localhost:5173/") == "http://localhost:5173/"
    assert monitor.feed("Local: http://localhost:5173/") is None
    assert [e.server_url for e in seen] == [None, "http://localhost:5173/", None]
    assert list(monitor.output)[0] == "starting"


def test_history_is_bounded():
    monitor = TerminalMonitor(EventBus(), history=2)
    for chunk in ("a", "b", "c"):
        monitor.feed(chunk)
    assert list(monitor.output) == ["b", "c"]


def test_run_sends_to_transport():
    transport = MagicMock()
    monitor = TerminalMonitor(EventBus(), transport=transport)
    monitor.run_all(["mkdir -p /tmp/x", "cd /tmp/x"])
    assert [c.args[0] for c in transport.send.call_args_list] == ["mkdir -p /tmp/x", "cd /tmp/x"]


def test_run_without_transport():
    with pytest.raises(WorkspaceError):
        TerminalMonitor(EventBus()).run("ls")
