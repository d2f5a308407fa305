#!/usr/bin/env python3
"""AppForge - HTTP API over per-session workspaces."""

import logging
import os
import threading
import time
import uuid

from flask import Flask, jsonify, request

from agents.scaffolder import Scaffolder
from config.defaults import DEFAULTS
from core import tree
from core.errors import PathExistsError, PathNotFoundError, TypingInProgressError, WorkspaceError
from core.persistence import InMemoryProjectStore
from core.workspace import Workspace

logger = logging.getLogger(__name__)

app = Flask(__name__)
store = InMemoryProjectStore()
scaffolder = Scaffolder()
renderer = None  # None means core.diagram.MermaidInkRenderer

# Live workspaces keyed by session id: {id: {"workspace": ..., "created": timestamp}}
_sessions = {}
_sessions_lock = threading.Lock()
_MAX_SESSIONS = DEFAULTS["max_sessions"]
_SESSION_TTL = DEFAULTS["session_ttl"]


def _discard_session(session_id):
    """Dispose a removed session's workspace and drop what was kept for it."""
    session = _sessions.pop(session_id)
    workspace = session["workspace"]
    workspace.dispose()
    store.forget(workspace.owner)
    scaffolder.discard(workspace.owner)
    return session


def _cleanup_sessions():
    """Dispose expired sessions. Called under _sessions_lock."""
    now = time.time()
    expired = [sid for sid, s in _sessions.items() if now - s["created"] > _SESSION_TTL]
    for sid in expired:
        _discard_session(sid)
    # If still over limit, drop oldest
    if len(_sessions) > _MAX_SESSIONS:
        by_age = sorted(_sessions.items(), key=lambda x: x[1]["created"])
        for sid, _ in by_age[:len(_sessions) - _MAX_SESSIONS]:
            _discard_session(sid)


def _store_session(workspace):
    session_id = str(uuid.uuid4())[:8]
    with _sessions_lock:
        _sessions[session_id] = {"workspace": workspace, "created": time.time()}
        _cleanup_sessions()
    return session_id


def _get_workspace(session_id):
    """Workspace for session_id, or None if not found/expired."""
    with _sessions_lock:
        session = _sessions.get(session_id)
        if session and time.time() - session["created"] > _SESSION_TTL:
            _discard_session(session_id)
            session = None
    return session["workspace"] if session else None


class SessionNotFoundError(WorkspaceError):
    def __init__(self, session_id):
        super().__init__(f"Session not found or expired: {session_id}")


def _workspace_or_404(session_id):
    workspace = _get_workspace(session_id)
    if workspace is None:
        raise SessionNotFoundError(session_id)
    return workspace


def _body():
    return request.get_json(silent=True) or {}


def _required(data, key):
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise WorkspaceError(f"Missing {key}")
    return value


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _message_to_dict(m):
    return {
        "id": m.id,
        "sender": m.sender,
        "content": m.content,
        "status": m.status,
        "timestamp": m.timestamp.isoformat(),
    }


def _editor_to_dict(workspace):
    state = workspace.code.materializer.editor_state()
    return {
        "selected_path": state.selected_path,
        "open_paths": list(state.open_paths),
        "unsaved_paths": sorted(state.unsaved_paths),
    }


def _files_to_dict(workspace):
    code = workspace.code
    return {
        "tree": tree.to_dict(code.display_root),
        "editor": _editor_to_dict(workspace),
        "typing": code.typing.state.value,
        "notice": code.notice,
    }


def _diagram_to_dict(workspace):
    outcome = workspace.diagram.outcome
    return {
        "status": outcome.status,
        "source": outcome.source,
        "svg": outcome.svg,
        "error": outcome.error,
        "render_id": outcome.render_id,
    }


def _result_to_dict(result):
    return {
        "request_id": result.request_id,
        "ok": result.ok,
        "explanation": result.explanation,
        "code": result.raw_code,
        "diagram": result.diagram_source,
        "config": result.config.to_dict() if result.config else None,
        "failure": result.failure,
    }


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

@app.errorhandler(WorkspaceError)
def handle_workspace_error(e):
    if isinstance(e, (PathNotFoundError, SessionNotFoundError)):
        status = 404
    elif isinstance(e, (PathExistsError, TypingInProgressError)):
        status = 409
    else:
        status = 400
    return jsonify({"error": str(e)}), status


# ---------------------------------------------------------------------------
# Sessions and generation
# ---------------------------------------------------------------------------

@app.route("/api/sessions", methods=["POST"])
def api_create_session():
    data = _body()
    workspace = Workspace(renderer=renderer, store=store, animate=bool(data.get("animate", False)))
    session_id = _store_session(workspace)
    workspace.owner = session_id
    return jsonify({"session_id": session_id}), 201


@app.route("/api/sessions/<session_id>", methods=["DELETE"])
def api_delete_session(session_id):
    with _sessions_lock:
        if session_id not in _sessions:
            return jsonify({"error": "Session not found"}), 404
        _discard_session(session_id)
    return jsonify({"deleted": session_id})


@app.route("/api/sessions/<session_id>/generate", methods=["POST"])
def api_generate(session_id):
    """Submit a prompt. With "async": true the call returns before the model answers."""
    workspace = _workspace_or_404(session_id)
    data = _body()
    prompt = _required(data, "prompt").strip()
    features = data.get("features") or []
    if not isinstance(features, list):
        raise WorkspaceError("features must be a list")

    if data.get("async"):
        ctx, _ = workspace.submit_async(prompt, features)
        return jsonify({"request_id": ctx.request_id}), 202

    result = workspace.submit(prompt, features)
    return jsonify(_result_to_dict(result))


@app.route("/api/sessions/<session_id>/chat")
def api_chat(session_id):
    workspace = _workspace_or_404(session_id)
    return jsonify({
        "messages": [_message_to_dict(m) for m in workspace.chat.messages],
        "loading": workspace.chat.loading,
        "status": workspace.chat.loading_status,
    })


@app.route("/api/sessions/<session_id>/chat/export")
def api_chat_export(session_id):
    workspace = _workspace_or_404(session_id)
    return workspace.chat.export_text(), 200, {"Content-Type": "text/plain; charset=utf-8"}


# ---------------------------------------------------------------------------
# Files and editor
# ---------------------------------------------------------------------------

@app.route("/api/sessions/<session_id>/files")
def api_files(session_id):
    return jsonify(_files_to_dict(_workspace_or_404(session_id)))


@app.route("/api/sessions/<session_id>/files/<path:path>", methods=["GET"])
def api_read_file(session_id, path):
    workspace = _workspace_or_404(session_id)
    content = workspace.code.materializer.read(path)
    if content is None:
        raise PathNotFoundError(path)
    return jsonify({"path": path, "content": content})


@app.route("/api/sessions/<session_id>/files/<path:path>", methods=["PUT"])
def api_write_file(session_id, path):
    workspace = _workspace_or_404(session_id)
    data = _body()
    content = data.get("content")
    if not isinstance(content, str):
        raise WorkspaceError("Missing content")
    workspace.code.edit(path, content)
    return jsonify(_editor_to_dict(workspace))


@app.route("/api/sessions/<session_id>/files/<path:path>", methods=["POST"])
def api_create_file(session_id, path):
    workspace = _workspace_or_404(session_id)
    data = _body()
    content = data.get("content", "")
    if not isinstance(content, str):
        raise WorkspaceError("content must be a string")
    created = workspace.code.create(path, content=content, folder=bool(data.get("folder")))
    return jsonify({"path": created}), 201


@app.route("/api/sessions/<session_id>/files/<path:path>", methods=["DELETE"])
def api_delete_file(session_id, path):
    workspace = _workspace_or_404(session_id)
    workspace.code.delete(path)
    return jsonify(_files_to_dict(workspace))


@app.route("/api/sessions/<session_id>/editor/<action>", methods=["POST"])
def api_editor(session_id, action):
    workspace = _workspace_or_404(session_id)
    data = _body()
    if action in ("open", "select"):
        workspace.code.open(_required(data, "path"))
    elif action == "close":
        workspace.code.close(_required(data, "path"))
    elif action == "save":
        workspace.code.save(data.get("path"))
    else:
        return jsonify({"error": f"Unknown editor action: {action}"}), 404
    return jsonify(_editor_to_dict(workspace))


@app.route("/api/sessions/<session_id>/typing/<action>", methods=["POST"])
def api_typing(session_id, action):
    workspace = _workspace_or_404(session_id)
    controls = {
        "pause": workspace.code.typing.pause,
        "resume": workspace.code.typing.resume,
        "skip": workspace.code.typing.skip,
    }
    if action not in controls:
        return jsonify({"error": f"Unknown typing action: {action}"}), 404
    changed = controls[action]()
    return jsonify({"changed": changed, "typing": workspace.code.typing.state.value})


# ---------------------------------------------------------------------------
# Diagram, preview, terminal
# ---------------------------------------------------------------------------

@app.route("/api/sessions/<session_id>/diagram")
def api_diagram(session_id):
    return jsonify(_diagram_to_dict(_workspace_or_404(session_id)))


@app.route("/api/sessions/<session_id>/diagram/rerender", methods=["POST"])
def api_diagram_rerender(session_id):
    workspace = _workspace_or_404(session_id)
    workspace.diagram.rerender()
    return jsonify(_diagram_to_dict(workspace))


@app.route("/api/sessions/<session_id>/preview")
def api_preview(session_id):
    preview = _workspace_or_404(session_id).preview
    return jsonify({
        "mode": preview.mode,
        "server_url": preview.server_url,
        "code": preview.code,
        "request_id": preview.request_id,
    })


@app.route("/api/sessions/<session_id>/terminal/output", methods=["POST"])
def api_terminal_output(session_id):
    """Feed a chunk of process output captured by the terminal backend."""
    workspace = _workspace_or_404(session_id)
    chunk = _body().get("chunk")
    if not isinstance(chunk, str):
        raise WorkspaceError("Missing chunk")
    url = workspace.terminal.feed(chunk)
    return jsonify({"server_url": url or workspace.terminal.server_url})


@app.route("/api/sessions/<session_id>/scaffold", methods=["POST"])
def api_scaffold(session_id):
    """Bootstrap commands for the last generated project's config."""
    workspace = _workspace_or_404(session_id)
    result = workspace.last_result
    if result is None or result.config is None:
        return jsonify({"error": "Nothing generated yet"}), 400
    project = scaffolder.create_session(result.config, owner=workspace.owner)
    return jsonify({
        "project_session": project.id,
        "terminal_path": project.terminal_path,
        "commands": scaffolder.init_commands(project),
    })


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

@app.route("/api/sessions/<session_id>/save", methods=["POST"])
def api_save(session_id):
    workspace = _workspace_or_404(session_id)
    if workspace.last_result is None:
        return jsonify({"error": "Nothing generated yet"}), 400
    store.save_result(workspace.owner, workspace.last_result)
    return jsonify({"saved": workspace.last_result.request_id})


@app.route("/api/sessions/<session_id>/load-latest", methods=["POST"])
def api_load_latest(session_id):
    workspace = _workspace_or_404(session_id)
    result = workspace.load_latest()
    if result is None:
        return jsonify({"error": "No saved project"}), 404
    return jsonify(_result_to_dict(result))


if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("APPFORGE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.environ.get("PORT", 5001))
    print(f"AppForge API running at http://localhost:{port}")
    app.run(debug=False, port=port)
