"""Tests for core.typing_sim and core.timers: ticks are driven by hand."""

import threading

from core.timers import StatusRotator, Ticker
from core.typing_sim import TypingSimulation, TypingState, reveal_prefixes


def _sim(chunk_size=4):
    progress, settled = [], []
    sim = TypingSimulation(progress.append, settled.append, chunk_size=chunk_size, ticker_factory=None)
    return sim, progress, settled


def test_reveal_prefixes():
    assert list(reveal_prefixes("abcdefghij", 4)) == ["abcd", "abcdefgh", "abcdefghij"]
    assert list(reveal_prefixes("abcd", 4)) == ["abcd"]
    assert list(reveal_prefixes("", 4)) == [""]


def test_ticks_reveal_then_settle_once():
    sim, progress, settled = _sim()
    sim.start("abcdefghij")
    assert sim.state is TypingState.TYPING
    sim.tick()
    sim.tick()
    assert sim.revealed == "abcdefgh"
    sim.tick()
    assert sim.state is TypingState.SETTLED
    assert progress == ["abcd", "abcdefgh", "abcdefghij"]
    assert settled == ["abcdefghij"]
    sim.tick()
    assert settled == ["abcdefghij"]


def test_pause_holds_position():
    sim, progress, _ = _sim()
    sim.start("abcdefghij")
    sim.tick()
    assert sim.pause()
    sim.tick()
    assert sim.revealed == "abcd"
    assert sim.state is TypingState.PAUSED
    assert not sim.pause()
    assert sim.resume()
    sim.tick()
    assert sim.revealed == "abcdefgh"


def test_skip_settles_with_full_buffer():
    sim, _, settled = _sim()
    sim.start("abcdefghij")
    sim.tick()
    assert sim.skip()
    assert settled == ["abcdefghij"]
    assert sim.revealed == "abcdefghij"
    assert not sim.skip()


def test_skip_while_paused():
    sim, _, settled = _sim()
    sim.start("abcdefghij")
    sim.pause()
    sim.skip()
    assert settled == ["abcdefghij"]


def test_restart_abandons_previous_buffer():
    sim, _, settled = _sim()
    sim.start("first buffer")
    sim.tick()
    sim.start("second")
    sim.skip()
    assert settled == ["second"]


def test_cancel_does_not_settle():
    sim, _, settled = _sim()
    sim.start("abcdefghij")
    sim.cancel()
    assert not sim.active
    sim.tick()
    assert settled == []


def test_resume_only_from_paused():
    sim, _, _ = _sim()
    assert not sim.resume()
    sim.start("abc")
    assert not sim.resume()


class ManualTicker:
    """Ticker stand-in: records lifecycle, never fires on its own."""

    instances = []

    def __init__(self, interval, callback, name="ticker"):
        self.callback = callback
        self.started = False
        self.cancelled = False
        ManualTicker.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True


def test_pause_cancels_ticker_and_resume_starts_new_one():
    ManualTicker.instances = []
    sim = TypingSimulation(lambda p: None, lambda b: None, chunk_size=2, ticker_factory=ManualTicker)
    sim.start("abcdef")
    first = ManualTicker.instances[-1]
    assert first.started
    sim.pause()
    assert first.cancelled
    sim.resume()
    second = ManualTicker.instances[-1]
    assert second is not first and second.started
    second.callback()
    sim.skip()
    assert second.cancelled


def test_status_rotator_cycles():
    seen = []
    rotator = StatusRotator(["a", "b"], seen.append, interval=1, ticker_factory=None)
    rotator.start()
    rotator.advance()
    rotator.advance()
    assert seen == ["a", "b", "a"]
    rotator.stop()


def test_ticker_cancel_is_final():
    calls = []
    fired = threading.Event()

    def callback():
        calls.append(1)
        fired.set()

    ticker = Ticker(0.001, callback)
    ticker.start()
    assert fired.wait(2)
    ticker.cancel()
    count = len(calls)
    assert not ticker.running
    fired.clear()
    assert not fired.wait(0.05)
    assert len(calls) == count
