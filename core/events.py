"""Typed in-process publish/subscribe bus connecting the workspace panels.

Every event type has a fixed, frozen payload class. Delivery guarantees:

* one event is handed to all subscribers of its type before the next event
  of that type starts (events published meanwhile, from any thread or from a
  handler, are queued behind it);
* keyed payloads (chat messages) are delivered once per key, remembering
  the most recent SEEN_KEYS_LIMIT keys;
* un-keyed payloads carry a sequence number and the bus drops any that is
  not newer than the last one delivered for that type (last writer wins).
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum

from core.state import ChatMessage

logger = logging.getLogger(__name__)

SEEN_KEYS_LIMIT = 1024


class EventType(str, Enum):
    CHAT_MESSAGE_APPENDED = "chat-message-appended"
    PREVIEW_CODE_UPDATED = "preview-code-updated"
    DIAGRAM_SOURCE_UPDATED = "diagram-source-updated"
    DIAGRAM_RENDER_READY = "diagram-render-ready"
    EXTERNAL_PROCESS_OUTPUT = "external-process-output"


@dataclass(frozen=True)
class ChatMessageAppended:
    message: ChatMessage

    @property
    def key(self):
        # the loading placeholder and its final replacement share an id
        return (self.message.id, self.message.status)


@dataclass(frozen=True)
class PreviewCodeUpdated:
    seq: int
    code: str
    request_id: str | None = None
    config: object = None
    source: str = "generation"      # generation|editor
    path: str | None = None         # saved file, for editor updates


@dataclass(frozen=True)
class DiagramSourceUpdated:
    seq: int
    source: str | None
    request_id: str | None = None


@dataclass(frozen=True)
class DiagramRenderReady:
    seq: int
    outcome: object                 # core.diagram.DiagramOutcome
    request_id: str | None = None


@dataclass(frozen=True)
class ExternalProcessOutput:
    seq: int
    chunk: str
    server_url: str | None = None


PAYLOAD_TYPES = {
    EventType.CHAT_MESSAGE_APPENDED: ChatMessageAppended,
    EventType.PREVIEW_CODE_UPDATED: PreviewCodeUpdated,
    EventType.DIAGRAM_SOURCE_UPDATED: DiagramSourceUpdated,
    EventType.DIAGRAM_RENDER_READY: DiagramRenderReady,
    EventType.EXTERNAL_PROCESS_OUTPUT: ExternalProcessOutput,
}


class EventBus:
    def __init__(self, seen_keys_limit=SEEN_KEYS_LIMIT):
        self._lock = threading.Lock()
        self._handlers = {t: [] for t in EventType}
        self._queues = {t: deque() for t in EventType}
        self._draining = {t: False for t in EventType}
        self._seen_keys = set()
        self._seen_order = deque()
        self._seen_keys_limit = seen_keys_limit
        self._last_seq = {}
        self._seq = itertools.count(1)

    def next_seq(self):
        with self._lock:
            return next(self._seq)

    def subscribe(self, event_type, handler):
        """Register handler; registering the same handler twice is a no-op."""
        with self._lock:
            handlers = self._handlers[EventType(event_type)]
            if handler not in handlers:
                handlers.append(handler)

    def unsubscribe(self, event_type, handler):
        with self._lock:
            handlers = self._handlers[EventType(event_type)]
            if handler in handlers:
                handlers.remove(handler)

    def subscriber_count(self, event_type):
        with self._lock:
            return len(self._handlers[EventType(event_type)])

    def publish(self, event_type, payload):
        """Queue payload for delivery. Returns False if it was dropped as a duplicate."""
        event_type = EventType(event_type)
        expected = PAYLOAD_TYPES[event_type]
        if not isinstance(payload, expected):
            raise TypeError(f"{event_type.value} expects {expected.__name__}, got {type(payload).__name__}")

        with self._lock:
            if self._is_stale(event_type, payload):
                logger.debug("Dropping duplicate %s event", event_type.value)
                return False
            self._queues[event_type].append(payload)
            if self._draining[event_type]:
                return True
            self._draining[event_type] = True

        self._drain(event_type)
        return True

    def _is_stale(self, event_type, payload):
        """Called under the lock; records the payload as seen when it is fresh."""
        key = getattr(payload, "key", None)
        if key is not None:
            if key in self._seen_keys:
                return True
            self._seen_keys.add(key)
            self._seen_order.append(key)
            if len(self._seen_order) > self._seen_keys_limit:
                self._seen_keys.discard(self._seen_order.popleft())
            return False
        last = self._last_seq.get(event_type, 0)
        if payload.seq <= last:
            return True
        self._last_seq[event_type] = payload.seq
        return False

    def _drain(self, event_type):
        while True:
            with self._lock:
                queue = self._queues[event_type]
                if not queue:
                    self._draining[event_type] = False
                    return
                payload = queue.popleft()
                handlers = list(self._handlers[event_type])
            for handler in handlers:
                try:
                    handler(payload)
                except Exception:
                    # one broken panel must not starve the others
                    logger.exception("Subscriber %r failed on %s", handler, event_type.value)
