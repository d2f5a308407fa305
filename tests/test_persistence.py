"""Tests for core.persistence and utils.folder_naming."""

import os

import pytest

from core.persistence import InMemoryProjectStore, write_project
from core.state import GenerationResult
from utils.folder_naming import extract_project_name, get_output_dir, slugify


def test_store_keeps_history_per_owner():
    store = InMemoryProjectStore()
    a, b = GenerationResult(request_id="a"), GenerationResult(request_id="b")
    store.save_result("alice", a)
    store.save_result("alice", b)
    assert store.load_latest("alice") is b
    assert store.history("alice") == [a, b]
    assert store.load_latest("bob") is None
    assert store.history("bob") == []


def test_store_history_is_capped():
    store = InMemoryProjectStore(max_history=2)
    results = [GenerationResult(request_id=str(i)) for i in range(3)]
    for result in results:
        store.save_result("alice", result)
    assert store.history("alice") == results[1:]
    assert store.load_latest("alice") is results[2]


def test_store_forget_owner():
    store = InMemoryProjectStore()
    store.save_result("alice", GenerationResult(request_id="a"))
    store.forget("alice")
    store.forget("nobody")
    assert store.load_latest("alice") is None


def test_write_project(tmp_path):
    out = tmp_path / "out"
    written = write_project({"src/App.tsx": "app", "index.html": "<p/>"}, str(out))
    assert written == ["src/App.tsx", "index.html"]
    assert (out / "src" / "App.tsx").read_text() == "app"


def test_write_project_rejects_escape(tmp_path):
    with pytest.raises(ValueError):
        write_project({"../evil.js": "x"}, str(tmp_path / "out"))


def test_slug_and_name():
    assert slugify("  My Cool App! ") == "my_cool_app"
    assert extract_project_name("Build me a todo app with dark mode") == "todo_dark_mode"
    assert extract_project_name("make an app") == "project"


def test_output_dir_dedups(tmp_path):
    first = get_output_dir(str(tmp_path), "fullstack", "shop")
    assert first == os.path.join(str(tmp_path), "fullstack_apps", "shop")
    os.makedirs(first)
    assert get_output_dir(str(tmp_path), "fullstack", "shop") == first + "_2"


def test_output_dir_unknown_kind(tmp_path):
    assert "frontend_apps" in get_output_dir(str(tmp_path), "mobile", "x")
