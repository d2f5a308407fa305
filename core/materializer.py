"""Code-to-filesystem materializer: generated code -> virtual project tree."""

from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass

from config.stacks import MAIN_FILE_CANDIDATES
from core import tree
from core.errors import CodeParseError, PathExistsError, PathNotFoundError
from utils.template_engine import render_template

logger = logging.getLogger(__name__)

_PATH_KEY_RE = re.compile(r"[\w@.\-\[\]/\\]+")
_FRAMEWORK_IMPORT_RE = re.compile(
    r"""(?:import\s[^;'"]*?from\s*|import\s*|require\(\s*)['"](?:react|react-dom(?:/client)?)['"]"""
)
_JSX_RE = re.compile(r"return\s*\(?\s*<[A-Za-z>]|className=|<[A-Z][\w.]*[\s/>]")
_DOCUMENT_RE = re.compile(r"<!doctype\s+html|<html[\s>]", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[^>]*>([\s\S]*?)</style>", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<script[^>]*>([\s\S]*?)</script>", re.IGNORECASE)
_SCRIPT_HINT_RE = re.compile(r"\b(?:function|const|let|var|console\.|document\.|export|import)\b|=>")


@dataclass(frozen=True)
class MaterializedProject:
    files: dict
    root: tree.FolderNode
    main_path: str | None


@dataclass(frozen=True)
class OpenEditorState:
    selected_path: str | None
    open_paths: tuple
    unsaved_paths: frozenset


# ---------------------------------------------------------------------------
# Structure detection
# ---------------------------------------------------------------------------

def detect_structure(code, config=None):
    """Turn extracted code into a flat {path: content} map.

    Tried in order: explicit JSON file map, React component (wrapped in a Vite
    single-page-app skeleton), full HTML document (with its first style and
    script blocks pulled out), and finally a single generic file.
    """
    if code is None or not code.strip():
        raise CodeParseError("No code to materialize")

    file_map = _as_file_map(code)
    if file_map is not None:
        return file_map

    if _FRAMEWORK_IMPORT_RE.search(code) and _JSX_RE.search(code):
        return spa_skeleton(code, config)

    if _DOCUMENT_RE.search(code):
        files = {"index.html": code}
        css = _STYLE_RE.search(code)
        if css and css.group(1).strip():
            files["styles.css"] = css.group(1).strip()
        js = _SCRIPT_RE.search(code)
        if js and js.group(1).strip():
            files["script.js"] = js.group(1).strip()
        return files

    if _SCRIPT_HINT_RE.search(code):
        return {"index.js": code}
    return {"generated.txt": code}


def _as_file_map(code):
    text = code.strip()
    if not (text.startswith("{") and text.endswith("}")):
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(data, dict) and isinstance(data.get("files"), dict):
        data = data["files"]
    if not isinstance(data, dict) or not data:
        return None
    if not all(_looks_like_path(key) for key in data):
        return None
    not_text = [key for key, value in data.items() if not isinstance(value, str)]
    if not_text:
        raise CodeParseError(f"File map entries must be text: {', '.join(not_text)}")
    # keys as the tree will store them, so files and root agree
    return {"/".join(tree.split_path(key)): value for key, value in data.items()}


def _looks_like_path(key):
    return bool(_PATH_KEY_RE.fullmatch(key)) and ("." in key or "/" in key)


def spa_skeleton(app_code, config=None):
    """Wrap a root component in the files a Vite + React app needs to run."""
    typescript = config is None or config.language == "typescript"
    frontend = config.frontend if config is not None else None
    styling = frontend.styling if frontend is not None else "tailwind"
    features = frontend.features if frontend is not None else frozenset()
    name = config.name if config is not None else "generated-app"

    jsx_ext = "tsx" if typescript else "jsx"
    ext = "ts" if typescript else "js"
    tailwind = styling == "tailwind"

    files = {
        "index.html": render_template("spa", "index_html.tpl", {"title": name, "jsx_ext": jsx_ext}),
        f"src/main.{jsx_ext}": render_template("spa", "main_entry.tpl",
                                               {"non_null": "!" if typescript else ""}),
        f"src/App.{jsx_ext}": app_code,
        "src/index.css": render_template(
            "spa", "index_css_tailwind.tpl" if tailwind else "index_css_plain.tpl", {}),
        "package.json": _package_json(name, typescript, tailwind),
        f"vite.config.{ext}": render_template("spa", "vite_config.tpl", {}),
    }
    if tailwind:
        files["tailwind.config.js"] = render_template(
            "spa", "tailwind_config.tpl", {"dark_mode": "class" if "darkmode" in features else "media"})
        files["postcss.config.js"] = render_template("spa", "postcss_config.tpl", {})
    if typescript:
        files["tsconfig.json"] = json.dumps({
            "compilerOptions": {
                "target": "ES2020",
                "lib": ["DOM", "DOM.Iterable", "ES2020"],
                "module": "ESNext",
                "moduleResolution": "bundler",
                "jsx": "react-jsx",
                "strict": True,
                "skipLibCheck": True,
                "noEmit": True,
            },
            "include": ["src"],
        }, indent=2)
    return files


def _package_json(name, typescript, tailwind):
    dev = {"vite": "^5.4.0", "@vitejs/plugin-react": "^4.3.0"}
    if typescript:
        dev.update({"typescript": "^5.5.0", "@types/react": "^18.3.0", "@types/react-dom": "^18.3.0"})
    if tailwind:
        dev.update({"tailwindcss": "^3.4.0", "postcss": "^8.4.0", "autoprefixer": "^10.4.0"})
    return json.dumps({
        "name": name,
        "private": True,
        "version": "0.1.0",
        "type": "module",
        "scripts": {"dev": "vite", "build": "vite build", "preview": "vite preview"},
        "dependencies": {"react": "^18.3.0", "react-dom": "^18.3.0"},
        "devDependencies": dev,
    }, indent=2)


def pick_main_file(files, root):
    """First conventional entry point present, else the first file in pre-order."""
    normalized = {"/".join(tree.split_path(p)) for p in files}
    for candidate in MAIN_FILE_CANDIDATES:
        if candidate in normalized:
            return candidate
    return tree.first_file(root)


def materialize(code, config=None) -> MaterializedProject:
    files = detect_structure(code, config)
    root = tree.build_tree(files)
    return MaterializedProject(files=files, root=root, main_path=pick_main_file(files, root))


# ---------------------------------------------------------------------------
# Editor state
# ---------------------------------------------------------------------------

class EditorState:
    """Open tabs (insertion order), the selected tab and unsaved paths."""

    def __init__(self):
        self.selected_path = None
        self.open_paths = []
        self.unsaved_paths = set()

    def reset(self, main_path):
        self.open_paths = [main_path] if main_path else []
        self.selected_path = main_path
        self.unsaved_paths = set()

    def open(self, path):
        if path not in self.open_paths:
            self.open_paths.append(path)
        self.selected_path = path

    def close(self, path, root):
        if path not in self.open_paths:
            return
        self.open_paths.remove(path)
        self.unsaved_paths.discard(path)
        if self.selected_path == path:
            self.selected_path = None
        self.repair(root)

    def forget(self, path, root):
        """Drop path and everything beneath it, then restore the invariant."""
        prefix = path + "/"
        gone = [p for p in self.open_paths if p == path or p.startswith(prefix)]
        for p in gone:
            self.open_paths.remove(p)
        self.unsaved_paths = {p for p in self.unsaved_paths if not (p == path or p.startswith(prefix))}
        if self.selected_path in gone:
            self.selected_path = None
        self.repair(root)

    def repair(self, root):
        if self.open_paths:
            if self.selected_path not in self.open_paths:
                self.selected_path = self.open_paths[0]
            return
        # no tabs left: fall back to the first file of the tree
        first = tree.first_file(root)
        self.open_paths = [first] if first else []
        self.selected_path = first

    def snapshot(self) -> OpenEditorState:
        return OpenEditorState(
            selected_path=self.selected_path,
            open_paths=tuple(self.open_paths),
            unsaved_paths=frozenset(self.unsaved_paths),
        )


# ---------------------------------------------------------------------------
# Materializer
# ---------------------------------------------------------------------------

class Materializer:
    """Owns the project tree and the editor state; all mutations go through here.

    The tree is persistent, so every operation builds the new root first and
    then swaps it in under the lock: readers never see a half-applied change.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._root = tree.EMPTY_ROOT
        self.main_path = None
        self.editor = EditorState()

    @property
    def root(self):
        return self._root

    def load(self, code, config=None) -> MaterializedProject:
        """Replace the whole tree with one built from code.

        On CodeParseError the previous tree and editor state are left as they were.
        """
        try:
            project = materialize(code, config)
        except CodeParseError as e:
            logger.warning("Could not parse generated code: %s", e)
            raise
        with self._lock:
            self._root = project.root
            self.main_path = project.main_path
            self.editor.reset(project.main_path)
        logger.debug("Materialized %d file(s), main file %s", len(project.files), project.main_path)
        return project

    def read(self, path):
        """Content of the file at path, or None if there is no such file."""
        node = tree.find(self._root, tree.split_path(path))
        if node is None or node.is_folder:
            return None
        return node.content

    def write(self, path, content):
        segments = tree.split_path(path)
        with self._lock:
            node = tree.find(self._root, segments)
            if node is None or node.is_folder:
                raise PathNotFoundError(path)
            self._root = tree.update(self._root, segments, tree.FileNode(
                name=node.name, content=content, language=node.language))
            self.editor.unsaved_paths.add("/".join(segments))

    def create(self, path, content="", folder=False):
        segments = tree.split_path(path)
        name = segments[-1]
        node = tree.FolderNode(name) if folder else tree.FileNode(
            name=name, content=content, language=tree.guess_language(name))
        with self._lock:
            if tree.find(self._root, segments) is not None:
                raise PathExistsError(path)
            self._root = tree.insert(self._root, segments, node)
        return "/".join(segments)

    def delete(self, path):
        segments = tree.split_path(path)
        with self._lock:
            self._root = tree.remove(self._root, segments)
            self.editor.forget("/".join(segments), self._root)

    def exists(self, path):
        return tree.find(self._root, tree.split_path(path)) is not None

    def files(self):
        return {path: node.content for path, node in tree.iter_files(self._root)}

    # -- editor -------------------------------------------------------------

    def open_file(self, path):
        normalized = "/".join(tree.split_path(path))
        with self._lock:
            node = tree.find(self._root, tree.split_path(path))
            if node is None or node.is_folder:
                raise PathNotFoundError(path)
            self.editor.open(normalized)

    def close_file(self, path):
        with self._lock:
            self.editor.close("/".join(tree.split_path(path)), self._root)

    def save(self, path=None):
        """Mark path (default: the selected file) as saved and return its content."""
        with self._lock:
            target = "/".join(tree.split_path(path)) if path else self.editor.selected_path
            if target is None:
                return None
            content = self.read(target)
            if content is None:
                raise PathNotFoundError(target)
            self.editor.unsaved_paths.discard(target)
            return content

    def editor_state(self) -> OpenEditorState:
        with self._lock:
            return self.editor.snapshot()
