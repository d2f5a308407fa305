"""Terminal bridge: sends commands out, watches output for a local dev-server URL."""

import logging
import re
import threading
from collections import deque

from core.errors import WorkspaceError
from core.events import EventType, ExternalProcessOutput

logger = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
_LOCAL_URL_RE = re.compile(
    r"https?://(?:localhost|127\.0\.0\.1|0\.0\.0\.0|\[::1?\])(?::\d+)?(?:/[^\s'\"<>]*)?"
)


def find_server_url(text):
    """First local http(s) URL in text, ignoring terminal colour codes."""
    match = _LOCAL_URL_RE.search(_ANSI_RE.sub("", text))
    if not match:
        return None
    return match.group(0).rstrip(".,;)")


class TerminalMonitor:
    """transport is any object with send(command); output arrives through feed()."""

    def __init__(self, bus, transport=None, history=1000):
        self.bus = bus
        self.transport = transport
        self.server_url = None
        self.output = deque(maxlen=history)
        self._lock = threading.Lock()

    def run(self, command):
        if self.transport is None:
            raise WorkspaceError("No terminal is attached")
        logger.debug("terminal <- %s", command)
        self.transport.send(command)

    def run_all(self, commands):
        for command in commands:
            self.run(command)

    def feed(self, chunk):
        """Record one output chunk; signals the server URL the first time it appears."""
        url = find_server_url(chunk)
        with self._lock:
            self.output.append(chunk)
            if url is not None and url != self.server_url:
                self.server_url = url
                logger.info("Dev server ready at %s", url)
            else:
                url = None
        self.bus.publish(EventType.EXTERNAL_PROCESS_OUTPUT, ExternalProcessOutput(
            seq=self.bus.next_seq(), chunk=chunk, server_url=url))
        return url
