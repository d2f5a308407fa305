"""Immutable file tree with structural sharing.

Nodes are frozen; every mutation returns a new root that shares all untouched
subtrees with the old one, so a single-path update costs O(depth) and readers
holding the old root keep seeing a consistent snapshot.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from core.errors import CodeParseError, NotAFolderError, PathExistsError, PathNotFoundError

_EXT_LANGUAGES = {
    ".html": "html", ".htm": "html", ".css": "css", ".scss": "scss",
    ".js": "javascript", ".jsx": "javascript", ".mjs": "javascript", ".cjs": "javascript",
    ".ts": "typescript", ".tsx": "typescript",
    ".json": "json", ".md": "markdown", ".yml": "yaml", ".yaml": "yaml",
    ".py": "python", ".svg": "xml", ".xml": "xml", ".sh": "shell",
}


def guess_language(filepath):
    """Guess the editor language from a file extension."""
    _, ext = os.path.splitext(filepath)
    return _EXT_LANGUAGES.get(ext.lower(), "plaintext")


@dataclass(frozen=True)
class FileNode:
    name: str
    content: str
    language: str

    is_folder = False


@dataclass(frozen=True)
class FolderNode:
    name: str
    children: tuple = ()

    is_folder = True

    def child(self, name):
        for node in self.children:
            if node.name == name:
                return node
        return None


EMPTY_ROOT = FolderNode(name="")


def split_path(path):
    """Turn "a/b/c.js" into ("a", "b", "c.js"), rejecting unsafe segments."""
    if not isinstance(path, str):
        raise CodeParseError(f"Path must be a string: {path!r}")
    segments = tuple(s for s in path.replace("\\", "/").split("/") if s not in ("", "."))
    if not segments:
        raise CodeParseError(f"Empty path: {path!r}")
    if ".." in segments:
        raise CodeParseError(f"Path escapes the project root: {path}")
    return segments


def build_tree(files):
    """Nest a flat {path: content} map, creating folders on demand.

    Children keep the insertion order of the map. A path that needs a folder
    where a file already sits (or vice versa) is a CodeParseError.
    """
    root = EMPTY_ROOT
    for path, content in files.items():
        try:
            root = insert(root, split_path(path), _file(path, content))
        except (PathExistsError, NotAFolderError) as e:
            raise CodeParseError(f"Conflicting paths in generated files: {e}") from e
    return root


def _file(path, content):
    name = split_path(path)[-1]
    return FileNode(name=name, content=content, language=guess_language(name))


def find(root, segments):
    node = root
    for seg in segments:
        if not node.is_folder:
            return None
        node = node.child(seg)
        if node is None:
            return None
    return node


def insert(root, segments, node):
    """Add node at segments, creating intermediate folders. Fails if occupied."""
    head, rest = segments[0], segments[1:]
    existing = root.child(head)
    if not rest:
        if existing is not None:
            raise PathExistsError("/".join(segments))
        return replace(root, children=root.children + (replace(node, name=head),))
    if existing is None:
        return replace(root, children=root.children + (insert(FolderNode(head), rest, node),))
    if not existing.is_folder:
        raise NotAFolderError(f"{head} is a file")
    return _swap_child(root, head, insert(existing, rest, node))


def update(root, segments, node):
    """Replace the node at segments, which must already exist."""
    head, rest = segments[0], segments[1:]
    existing = root.child(head)
    if existing is None:
        raise PathNotFoundError("/".join(segments))
    if not rest:
        return _swap_child(root, head, node)
    if not existing.is_folder:
        raise PathNotFoundError("/".join(segments))
    return _swap_child(root, head, update(existing, rest, node))


def remove(root, segments):
    """Drop the node at segments along with any descendants."""
    head, rest = segments[0], segments[1:]
    existing = root.child(head)
    if existing is None or (rest and not existing.is_folder):
        raise PathNotFoundError("/".join(segments))
    if not rest:
        return replace(root, children=tuple(c for c in root.children if c.name != head))
    return _swap_child(root, head, remove(existing, rest))


def _swap_child(folder, name, new_child):
    return replace(folder, children=tuple(new_child if c.name == name else c for c in folder.children))


def iter_files(root, prefix=""):
    """Yield (path, FileNode) in pre-order."""
    for node in root.children:
        path = f"{prefix}{node.name}"
        if node.is_folder:
            yield from iter_files(node, path + "/")
        else:
            yield path, node


def first_file(root):
    for path, _ in iter_files(root):
        return path
    return None


def to_dict(node):
    """JSON-friendly view of a node, for the API."""
    if node.is_folder:
        return {"type": "folder", "name": node.name, "children": [to_dict(c) for c in node.children]}
    return {"type": "file", "name": node.name, "language": node.language}
