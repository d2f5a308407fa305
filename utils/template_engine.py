"""Template rendering for scaffold files and model prompts (string.Template)."""

import os
from functools import lru_cache
from string import Template

_ROOT = os.path.dirname(os.path.dirname(__file__))


def get_templates_dir():
    """Return the absolute path to the scaffold templates directory."""
    return os.path.join(_ROOT, "templates")


def get_prompts_dir():
    """Return the absolute path to the prompt templates directory."""
    return os.path.join(_ROOT, "agents", "prompts")


def _read_inside(base_dir, relative):
    resolved = os.path.realpath(os.path.join(base_dir, relative))
    if not resolved.startswith(os.path.realpath(base_dir) + os.sep):
        raise ValueError(f"Template path escapes {base_dir}: {relative}")
    with open(resolved, "r", encoding="utf-8") as f:
        return f.read()


@lru_cache(maxsize=None)
def load_template(category, template_name):
    """Load a scaffold template file and return its contents as a string."""
    return _read_inside(get_templates_dir(), os.path.join(category, template_name))


@lru_cache(maxsize=None)
def load_prompt(prompt_name):
    return _read_inside(get_prompts_dir(), f"{prompt_name}.txt")


def render_template(category, template_name, variables):
    """Load and render a scaffold template.

    Unknown placeholders are left as-is rather than raising errors, so
    generated code containing "$" survives untouched.
    """
    return Template(load_template(category, template_name)).safe_substitute(variables)


def render_prompt(prompt_name, variables):
    return Template(load_prompt(prompt_name)).safe_substitute(variables)
