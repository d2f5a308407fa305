"""Workspace: one user's panels, their event bus, and in-flight request tracking."""

from __future__ import annotations

import logging
import threading

from config.defaults import DEFAULTS
from core.diagram import DiagramValidator
from core.events import (
    ChatMessageAppended,
    DiagramSourceUpdated,
    EventBus,
    EventType,
    PreviewCodeUpdated,
)
from core.orchestrator import Orchestrator
from core.panels import ChatPanel, CodePanel, DiagramPanel, PreviewPanel
from core.state import ChatMessage, GenerationResult, RequestContext
from core.terminal import TerminalMonitor
from core.timers import StatusRotator, Ticker

logger = logging.getLogger(__name__)

EMPTY_REPLY = "I've processed your request, but there was an issue generating the application."
SUPERSEDED_REPLY = "A newer request replaced this one."


class Workspace:
    """Ties the pipeline to the panels.

    Every submission gets a RequestContext; only the most recent one may touch
    panel state. Results of superseded requests are dropped on arrival.
    """

    def __init__(self, invoke=None, renderer=None, store=None, owner="local",
                 animate=False, ticker_factory=Ticker, follow_up_diagram=True, transport=None):
        self.bus = EventBus()
        self.orchestrator = Orchestrator(invoke=invoke, follow_up_diagram=follow_up_diagram)
        self.store = store
        self.owner = owner
        self.ticker_factory = ticker_factory

        self.chat = ChatPanel(self.bus)
        self.code = CodePanel(self.bus, animate=animate, ticker_factory=ticker_factory)
        self.diagram = DiagramPanel(self.bus, DiagramValidator(renderer))
        self.preview = PreviewPanel(self.bus)
        self.terminal = TerminalMonitor(self.bus, transport=transport)

        self.last_result = None
        self._current = None
        self._rotator = None
        self._lock = threading.RLock()

    # -- request lifecycle ----------------------------------------------------

    def begin(self, prompt, features=None) -> RequestContext:
        """Register a new request, superseding whichever one is in flight."""
        ctx = RequestContext(prompt=prompt, features=tuple(features or ()))
        with self._lock:
            previous, self._current = self._current, ctx
            self._stop_rotator()
            if previous is not None:
                self._post(ChatMessage(id=previous.loading_message_id, sender="ai",
                                       content=SUPERSEDED_REPLY, status="complete"))
            self._post(ChatMessage(id=f"{ctx.request_id}-prompt", sender="user", content=prompt))
            self._post(ChatMessage(id=ctx.loading_message_id, sender="ai", content="", status="thinking"))
            self._rotator = StatusRotator(DEFAULTS["status_messages"], self.chat.set_status,
                                          DEFAULTS["status_interval"], ticker_factory=self.ticker_factory)
            self._rotator.start()
        return ctx

    def is_current(self, ctx):
        with self._lock:
            return self._current is not None and self._current.request_id == ctx.request_id

    def complete(self, ctx, result: GenerationResult):
        """Apply result to the panels if ctx is still the latest request."""
        with self._lock:
            if not self.is_current(ctx):
                logger.debug("Dropping stale result for request %s", ctx.request_id)
                return False
            self._current = None
            self._stop_rotator()
            self._deliver(ctx, result)
            return True

    def submit(self, prompt, features=None):
        """Run one request synchronously; returns the result even if it went stale."""
        ctx = self.begin(prompt, features)
        result = self._run(ctx)
        self.complete(ctx, result)
        return result

    def submit_async(self, prompt, features=None):
        """Run the request on a worker thread; returns (ctx, thread)."""
        ctx = self.begin(prompt, features)

        def work():
            self.complete(ctx, self._run(ctx))

        thread = threading.Thread(target=work, name=f"generate-{ctx.request_id}", daemon=True)
        thread.start()
        return ctx, thread

    def _run(self, ctx):
        """Run the pipeline; an unexpected error becomes a failed result so the request still settles."""
        try:
            return self.orchestrator.run(ctx)
        except Exception as e:
            logger.exception("Generation crashed for request %s", ctx.request_id)
            return GenerationResult(request_id=ctx.request_id, failure=str(e) or type(e).__name__)

    def cancel(self):
        """Mark the in-flight request stale; its eventual result becomes a no-op."""
        with self._lock:
            ctx, self._current = self._current, None
            self._stop_rotator()
            if ctx is not None:
                self._post(ChatMessage(id=ctx.loading_message_id, sender="ai",
                                       content="Request cancelled.", status="complete"))
        return ctx

    # -- delivery -------------------------------------------------------------

    def _deliver(self, ctx, result):
        if result.failure:
            self._post(ChatMessage(id=ctx.loading_message_id, sender="ai",
                                   content=f"Sorry, generation failed: {result.failure}", status="error"))
            return

        self.last_result = result
        self._post(ChatMessage(id=ctx.loading_message_id, sender="ai",
                               content=result.explanation or EMPTY_REPLY, status="complete"))
        self._publish_artifacts(result)
        if self.store is not None:
            self.store.save_result(self.owner, result)

    def _publish_artifacts(self, result):
        if result.raw_code:
            self.bus.publish(EventType.PREVIEW_CODE_UPDATED, PreviewCodeUpdated(
                seq=self.bus.next_seq(), code=result.raw_code,
                request_id=result.request_id, config=result.config))
        if result.diagram_source:
            self.bus.publish(EventType.DIAGRAM_SOURCE_UPDATED, DiagramSourceUpdated(
                seq=self.bus.next_seq(), source=result.diagram_source, request_id=result.request_id))

    def load_latest(self):
        """Restore the owner's last saved result into the code and diagram panels."""
        if self.store is None:
            return None
        result = self.store.load_latest(self.owner)
        if result is None:
            return None
        with self._lock:
            self._current = None
            self._stop_rotator()
            self.last_result = result
            self._publish_artifacts(result)
        return result

    def _post(self, message):
        self.bus.publish(EventType.CHAT_MESSAGE_APPENDED, ChatMessageAppended(message))

    def _stop_rotator(self):
        if self._rotator is not None:
            self._rotator.stop()
            self._rotator = None
        self.chat.set_status(None)

    def dispose(self):
        with self._lock:
            self._current = None
            self._stop_rotator()
        for panel in (self.chat, self.code, self.diagram, self.preview):
            panel.dispose()
