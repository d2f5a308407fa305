"""Simulated "typing" playback of generated code.

States: IDLE -> TYPING <-> PAUSED, TYPING/PAUSED -> SETTLED. The reveal is a
plain generator of buffer prefixes; a Ticker (or a test calling tick()) pulls
from it. Settling hands the complete buffer to on_settle exactly once.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum

from config.defaults import DEFAULTS
from core.timers import Ticker

logger = logging.getLogger(__name__)


class TypingState(str, Enum):
    IDLE = "idle"
    TYPING = "typing"
    PAUSED = "paused"
    SETTLED = "settled"


def reveal_prefixes(buffer, chunk_size):
    """Yield successively longer prefixes of buffer, ending with buffer itself."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")
    for end in range(chunk_size, len(buffer), chunk_size):
        yield buffer[:end]
    yield buffer


class TypingSimulation:
    def __init__(self, on_progress, on_settle, chunk_size=None, interval=None, ticker_factory=Ticker):
        self.on_progress = on_progress
        self.on_settle = on_settle
        self.chunk_size = chunk_size or DEFAULTS["typing_chunk_size"]
        self.interval = interval or DEFAULTS["typing_interval"]
        self.ticker_factory = ticker_factory
        self.state = TypingState.IDLE
        self.buffer = ""
        self.revealed = ""
        self._prefixes = None
        self._ticker = None
        self._lock = threading.RLock()

    @property
    def active(self):
        return self.state in (TypingState.TYPING, TypingState.PAUSED)

    def start(self, buffer):
        """Begin revealing a new buffer, abandoning any playback in progress."""
        self._stop_ticker()
        with self._lock:
            self.buffer = buffer
            self.revealed = ""
            self._prefixes = reveal_prefixes(buffer, self.chunk_size)
            self.state = TypingState.TYPING
        self._start_ticker()

    def tick(self):
        """Reveal the next prefix; settles once the whole buffer is out."""
        with self._lock:
            if self.state is not TypingState.TYPING:
                return
            prefix = next(self._prefixes, None)
            if prefix is not None:
                self.revealed = prefix
        if prefix is None or prefix == self.buffer:
            if prefix is not None:
                self.on_progress(prefix)
            self._settle()
        else:
            self.on_progress(prefix)

    def pause(self):
        with self._lock:
            if self.state is not TypingState.TYPING:
                return False
            self.state = TypingState.PAUSED
        self._stop_ticker()
        return True

    def resume(self):
        with self._lock:
            if self.state is not TypingState.PAUSED:
                return False
            self.state = TypingState.TYPING
        self._start_ticker()
        return True

    def skip(self):
        """Jump straight to the end of the buffer."""
        if not self.active:
            return False
        self._settle()
        return True

    def cancel(self):
        """Tear down without settling (panel disposal)."""
        self._stop_ticker()
        with self._lock:
            if self.active:
                self.state = TypingState.IDLE
            self._prefixes = None

    def _settle(self):
        with self._lock:
            if not self.active:
                return
            self.state = TypingState.SETTLED
            self.revealed = self.buffer
            self._prefixes = None
            buffer = self.buffer
        self._stop_ticker()
        self.on_settle(buffer)

    def _start_ticker(self):
        if self.ticker_factory is None:
            return
        ticker = self.ticker_factory(self.interval, self.tick, name="typing")
        with self._lock:
            self._ticker = ticker
        ticker.start()

    def _stop_ticker(self):
        # never join the ticker while holding our lock: tick() needs it
        with self._lock:
            ticker, self._ticker = self._ticker, None
        if ticker is not None:
            ticker.cancel()
