"""Naming utilities: slugs, project names, deduplicated export directories."""

import os
import re

KIND_DIRS = {
    "frontend": "frontend_apps",
    "backend": "backend_apps",
    "fullstack": "fullstack_apps",
}

_FILLER = {
    "build", "me", "a", "an", "the", "create", "make", "generate",
    "write", "for", "to", "with", "using", "that", "and", "app",
    "application", "web", "website", "site", "page", "please", "can",
    "you", "i", "want", "need", "some", "new", "simple",
}


def slugify(text):
    """Convert text to a filesystem-safe slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "_", text)
    return text.strip("_")


def extract_project_name(request):
    """Pull a short project name from the request text."""
    words = re.sub(r"[^\w\s]", "", request.lower()).split()
    meaningful = [w for w in words if w not in _FILLER]
    name = "_".join(meaningful[:3]) if meaningful else "project"
    return slugify(name)


MAX_DEDUP = 1000


def get_output_dir(base_dir, kind, project_name):
    """Return a fresh directory under base_dir/<kind dir>/ for the project."""
    kind_dir = KIND_DIRS.get(kind, "frontend_apps")
    base = os.path.join(base_dir, kind_dir, slugify(project_name) or "project")
    resolved = os.path.realpath(base)
    if not resolved.startswith(os.path.realpath(base_dir) + os.sep):
        raise ValueError(f"Export path escapes base directory: {base}")

    if not os.path.exists(base):
        return base

    # Dedup with _2, _3, etc.
    for counter in range(2, MAX_DEDUP + 2):
        candidate = f"{base}_{counter}"
        if not os.path.exists(candidate):
            return candidate

    raise RuntimeError(f"Too many duplicate projects (>{MAX_DEDUP}) for: {project_name}")
