"""Tests for the command-line entry point."""

import json
import os
from unittest.mock import patch

import pytest

import main
from tests.fakes import ScriptedModel
from utils.llm import ModelResponse

NO_DIAGRAM = "Landing page.\n\n```html\n<!DOCTYPE html><html><body>hi</body></html>\n```"


@pytest.fixture
def model():
    fake = ScriptedModel()
    with patch("utils.llm.invoke", fake):
        yield fake


def test_generate_prints_files(model, capsys):
    assert main.main(["generate", "--prompt", "todo app", "--show-diagram"]) == 0
    out = capsys.readouterr().out
    assert "Project:  todo-app (frontend, typescript)" in out
    assert "src/App.tsx" in out
    assert "graph TD" in out


def test_generate_writes_project(model, tmp_path, capsys):
    assert main.main(["generate", "--prompt", "todo app", "--out", str(tmp_path)]) == 0
    target = tmp_path / "frontend_apps" / "todo_app"
    assert (target / "src" / "App.tsx").exists()
    assert (target / "package.json").exists()
    assert str(target) in capsys.readouterr().out


def test_generate_writes_rooted_file_map(model, tmp_path):
    model.answers["generate"] = 'Files.\n\n```json\n{"/abs/app.js": "const a = 1;"}\n```\n\n```mermaid\ngraph TD\nA-->B\n```'
    assert main.main(["generate", "--prompt", "tiny script", "--out", str(tmp_path)]) == 0
    written = list(tmp_path.rglob("app.js"))
    assert len(written) == 1
    assert written[0].parent.name == "abs"
    assert written[0].read_text() == "const a = 1;"


def test_generate_feature_flags(model):
    main.main(["generate", "--prompt", "todo app", "--feature", "auth", "--feature", "upload"])
    assert "auth, upload" in model.calls[0][1]


def test_generate_no_follow_up(model):
    model.answers["generate"] = NO_DIAGRAM
    main.main(["generate", "--prompt", "landing page", "--no-follow-up"])
    assert "diagram" not in model.kinds()


def test_generate_failure(model, capsys):
    model.answers["generate"] = ModelResponse(error="rate limited")
    assert main.main(["generate", "--prompt", "todo app"]) == 1
    assert "rate limited" in capsys.readouterr().err


def test_classify(model, capsys):
    assert main.main(["classify", "--prompt", "todo app"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["type"] == "frontend"
    assert data["frontend"]["features"] == ["darkmode", "responsive"]


def test_scaffold(model, tmp_path, capsys):
    assert main.main(["scaffold", "--prompt", "todo app", "--root", str(tmp_path)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("# todo-app (frontend) in " + str(tmp_path) + os.sep)
    assert "npx create-react-app todo-app --template typescript" in lines


def test_no_command(capsys):
    assert main.main([]) == 1
