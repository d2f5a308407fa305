"""Panel state holders: chat, code, diagram and preview.

Each panel talks to the others only through the EventBus it is given.
dispose() unsubscribes and tears down any timers.
"""

from __future__ import annotations

import logging
import threading

from core.diagram import DiagramOutcome
from core.errors import CodeParseError, TypingInProgressError
from core.events import DiagramRenderReady, EventType, PreviewCodeUpdated
from core.materializer import Materializer, materialize
from core.state import ChatMessage
from core.timers import Ticker
from core.typing_sim import TypingSimulation

logger = logging.getLogger(__name__)

GREETING = "Hello! I'm your AI assistant. How can I help you build your web application today?"


class ChatPanel:
    def __init__(self, bus, greeting=True):
        self.bus = bus
        self.messages = []
        self.loading_status = None
        self._lock = threading.Lock()
        if greeting:
            self.messages.append(ChatMessage(id="greeting", sender="ai", content=GREETING))
        bus.subscribe(EventType.CHAT_MESSAGE_APPENDED, self._on_message)

    def _on_message(self, event):
        message = event.message
        with self._lock:
            for i, existing in enumerate(self.messages):
                if existing.id == message.id:
                    # only the loading placeholder may be replaced
                    if existing.is_loading:
                        self.messages[i] = message
                    return
            self.messages.append(message)
        if not message.is_loading and message.sender == "ai":
            self.loading_status = None

    def set_status(self, text):
        self.loading_status = text

    @property
    def loading(self):
        return any(m.is_loading for m in self.messages)

    def export_text(self):
        """Transcript as "[HH:MM] You: ..." blocks, loading placeholders left out."""
        lines = []
        for m in self.messages:
            if m.is_loading:
                continue
            who = "You" if m.sender == "user" else "AI"
            lines.append(f"[{m.timestamp.strftime('%H:%M')}] {who}: {m.content}")
        return "\n\n".join(lines)

    def dispose(self):
        self.bus.unsubscribe(EventType.CHAT_MESSAGE_APPENDED, self._on_message)


class CodePanel:
    """Editor + file tree. Generated code either lands at once or is typed out.

    While typing, partial buffers are materialized into preview_root for
    display only; the authoritative tree in the Materializer is replaced once,
    from the complete buffer, when playback settles.
    """

    def __init__(self, bus, materializer=None, animate=False, ticker_factory=Ticker):
        self.bus = bus
        self.materializer = materializer or Materializer()
        self.animate = animate
        self.notice = None
        self.preview_root = None
        self._config = None
        self.typing = TypingSimulation(
            on_progress=self._on_typing_progress,
            on_settle=self._on_typing_settled,
            ticker_factory=ticker_factory,
        )
        bus.subscribe(EventType.PREVIEW_CODE_UPDATED, self._on_code)

    # -- incoming code --------------------------------------------------------

    def _on_code(self, event):
        if event.source != "generation":
            return
        self._config = event.config
        if self.animate:
            self.preview_root = None
            self.typing.start(event.code)
        else:
            self.apply_code(event.code, event.config)

    def apply_code(self, code, config=None):
        """Replace the tree. A parse failure leaves a notice and the old tree."""
        try:
            self.materializer.load(code, config)
        except CodeParseError as e:
            self.notice = f"Could not parse generated code: {e}"
            return False
        self.notice = None
        return True

    def _on_typing_progress(self, prefix):
        if not self.typing.active:
            return
        try:
            self.preview_root = materialize(prefix, self._config).root
        except CodeParseError:
            # half-typed code often is not parseable yet
            logger.debug("Partial buffer not parseable (%d chars)", len(prefix))

    def _on_typing_settled(self, buffer):
        self.preview_root = None
        self.apply_code(buffer, self._config)

    @property
    def display_root(self):
        if self.typing.active and self.preview_root is not None:
            return self.preview_root
        return self.materializer.root

    # -- user actions ---------------------------------------------------------

    def _guard(self):
        if self.typing.active:
            raise TypingInProgressError("Code is still being written; skip or wait before editing")

    def edit(self, path, content):
        self._guard()
        self.materializer.write(path, content)

    def create(self, path, content="", folder=False):
        self._guard()
        return self.materializer.create(path, content=content, folder=folder)

    def delete(self, path):
        self._guard()
        self.materializer.delete(path)

    def open(self, path):
        self.materializer.open_file(path)

    def close(self, path):
        self.materializer.close_file(path)

    def save(self, path=None):
        """Mark a file saved and push it to the preview."""
        self._guard()
        target = path or self.materializer.editor.selected_path
        content = self.materializer.save(target)
        if content is not None:
            self.bus.publish(EventType.PREVIEW_CODE_UPDATED, PreviewCodeUpdated(
                seq=self.bus.next_seq(), code=content, source="editor", path=target))
        return content

    def dismiss_notice(self):
        self.notice = None

    def dispose(self):
        self.typing.cancel()
        self.bus.unsubscribe(EventType.PREVIEW_CODE_UPDATED, self._on_code)


class DiagramPanel:
    def __init__(self, bus, validator):
        self.bus = bus
        self.validator = validator
        self.source = None
        self.outcome = DiagramOutcome(status="empty")
        bus.subscribe(EventType.DIAGRAM_SOURCE_UPDATED, self._on_source)

    def _on_source(self, event):
        self.source = event.source
        self.outcome = self.validator.render(event.source)
        self.bus.publish(EventType.DIAGRAM_RENDER_READY, DiagramRenderReady(
            seq=self.bus.next_seq(), outcome=self.outcome, request_id=event.request_id))

    def rerender(self):
        self.outcome = self.validator.render(self.source)
        return self.outcome

    def dispose(self):
        self.bus.unsubscribe(EventType.DIAGRAM_SOURCE_UPDATED, self._on_source)


class PreviewPanel:
    """Holds what the live preview shows: the dev server once it is up, else inline code."""

    def __init__(self, bus):
        self.bus = bus
        self.code = None
        self.request_id = None
        self.server_url = None
        bus.subscribe(EventType.PREVIEW_CODE_UPDATED, self._on_code)
        bus.subscribe(EventType.EXTERNAL_PROCESS_OUTPUT, self._on_output)

    def _on_code(self, event):
        if event.source == "editor" and not (event.path or "").endswith((".html", ".htm")):
            return
        self.code = event.code
        if event.request_id:
            self.request_id = event.request_id

    def _on_output(self, event):
        if event.server_url:
            self.server_url = event.server_url

    @property
    def mode(self):
        if self.server_url:
            return "server"
        return "inline" if self.code else "empty"

    def dispose(self):
        self.bus.unsubscribe(EventType.PREVIEW_CODE_UPDATED, self._on_code)
        self.bus.unsubscribe(EventType.EXTERNAL_PROCESS_OUTPUT, self._on_output)
