"""Cancellable repeating timer used for typing playback and status rotation."""

import logging
import threading

logger = logging.getLogger(__name__)


class Ticker:
    """Calls callback every interval seconds on a daemon thread until cancelled.

    cancel() is deterministic: once it returns (from any thread other than the
    ticker's own) no further callback will run.
    """

    def __init__(self, interval, callback, name="ticker"):
        self.interval = interval
        self.callback = callback
        self.name = name
        self._stopped = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and not self._stopped.is_set()

    def start(self):
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self):
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _loop(self):
        while not self._stopped.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("%s callback failed; stopping", self.name)
                self._stopped.set()


class StatusRotator:
    """Cycles through status texts while a request is in flight."""

    def __init__(self, messages, on_change, interval, ticker_factory=Ticker):
        self.messages = list(messages)
        self.on_change = on_change
        self._index = 0
        self._ticker = ticker_factory(interval, self.advance, name="status-rotator") if ticker_factory else None

    @property
    def current(self):
        return self.messages[self._index] if self.messages else ""

    def start(self):
        self.on_change(self.current)
        if self._ticker is not None:
            self._ticker.start()

    def advance(self):
        if not self.messages:
            return
        self._index = (self._index + 1) % len(self.messages)
        self.on_change(self.current)

    def stop(self):
        if self._ticker is not None:
            self._ticker.cancel()
