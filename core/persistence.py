"""Save/load hooks for generation results, plus writing a project to disk."""

from __future__ import annotations

import os
import threading
from collections import deque
from datetime import datetime
from typing import Protocol

from config.defaults import DEFAULTS
from core.state import GenerationResult


class ProjectStore(Protocol):
    def save_result(self, owner: str, result: GenerationResult) -> None: ...

    def load_latest(self, owner: str) -> GenerationResult | None: ...


class InMemoryProjectStore:
    """Keeps the most recent saved results per owner, oldest dropped first."""

    def __init__(self, max_history=None):
        self.max_history = max_history or DEFAULTS["max_history"]
        self._results = {}
        self._lock = threading.Lock()

    def save_result(self, owner, result):
        with self._lock:
            saved = self._results.setdefault(owner, deque(maxlen=self.max_history))
            saved.append((datetime.now(), result))

    def load_latest(self, owner):
        with self._lock:
            saved = self._results.get(owner)
            return saved[-1][1] if saved else None

    def history(self, owner):
        with self._lock:
            return [result for _, result in self._results.get(owner, [])]

    def forget(self, owner):
        with self._lock:
            self._results.pop(owner, None)


def write_project(files, output_dir):
    """Write {path: content} under output_dir; returns the paths written."""
    os.makedirs(output_dir, exist_ok=True)
    root = os.path.realpath(output_dir)
    written = []
    for path, content in files.items():
        resolved = os.path.realpath(os.path.join(output_dir, path))
        if not resolved.startswith(root + os.sep):
            raise ValueError(f"Path escapes output directory: {path}")
        os.makedirs(os.path.dirname(resolved), exist_ok=True)
        with open(resolved, "w", encoding="utf-8") as fp:
            fp.write(content)
        written.append(path)
    return written
