"""Tests for core.tree: the persistent project tree."""

import pytest

from core import tree
from core.errors import CodeParseError, NotAFolderError, PathExistsError, PathNotFoundError


def _root():
    return tree.build_tree({
        "src/App.tsx": "app",
        "src/components/Button.tsx": "button",
        "README.md": "readme",
    })


def test_split_path_normalizes():
    assert tree.split_path("./src//App.tsx") == ("src", "App.tsx")
    assert tree.split_path("src\\App.tsx") == ("src", "App.tsx")


@pytest.mark.parametrize("bad", ["", "/", "../etc/passwd", "a/../../b"])
def test_split_path_rejects(bad):
    with pytest.raises(CodeParseError):
        tree.split_path(bad)


def test_build_tree_nests_folders():
    root = _root()
    src = root.child("src")
    assert src.is_folder
    assert [c.name for c in src.children] == ["App.tsx", "components"]
    assert tree.find(root, ("src", "components", "Button.tsx")).content == "button"


def test_build_tree_conflict():
    with pytest.raises(CodeParseError):
        tree.build_tree({"a": "file", "a/b.js": "x"})


def test_guess_language():
    assert tree.guess_language("src/App.tsx") == "typescript"
    assert tree.guess_language("styles.CSS") == "css"
    assert tree.guess_language("Makefile") == "plaintext"


def test_update_shares_untouched_subtrees():
    root = _root()
    new_root = tree.update(root, ("README.md",), tree.FileNode("README.md", "new", "markdown"))
    assert new_root.child("src") is root.child("src")
    assert tree.find(root, ("README.md",)).content == "readme"
    assert tree.find(new_root, ("README.md",)).content == "new"


def test_update_missing_path():
    with pytest.raises(PathNotFoundError):
        tree.update(_root(), ("nope.js",), tree.FileNode("nope.js", "", "javascript"))


def test_insert_existing():
    with pytest.raises(PathExistsError):
        tree.insert(_root(), ("README.md",), tree.FileNode("README.md", "", "markdown"))


def test_insert_under_file():
    with pytest.raises(NotAFolderError):
        tree.insert(_root(), ("README.md", "x.js"), tree.FileNode("x.js", "", "javascript"))


def test_remove_folder_drops_descendants():
    root = tree.remove(_root(), ("src",))
    assert [p for p, _ in tree.iter_files(root)] == ["README.md"]


def test_remove_missing():
    with pytest.raises(PathNotFoundError):
        tree.remove(_root(), ("src", "missing.ts"))


def test_iter_files_preorder_and_first_file():
    root = _root()
    assert [p for p, _ in tree.iter_files(root)] == [
        "src/App.tsx", "src/components/Button.tsx", "README.md",
    ]
    assert tree.first_file(root) == "src/App.tsx"
    assert tree.first_file(tree.EMPTY_ROOT) is None


def test_to_dict():
    data = tree.to_dict(tree.build_tree({"a/b.js": "x"}))
    assert data == {
        "type": "folder", "name": "",
        "children": [{"type": "folder", "name": "a", "children": [
            {"type": "file", "name": "b.js", "language": "javascript"},
        ]}],
    }
