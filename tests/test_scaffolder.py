"""Tests for agents.scaffolder: command lists only, nothing is executed."""

import pytest

from agents.scaffolder import Scaffolder
from core.errors import InvalidConfigError
from core.state import BackendConfig, FrontendConfig, ProjectConfig


@pytest.fixture
def scaffolder(tmp_path):
    return Scaffolder(root=str(tmp_path))


def _config(kind, language="typescript", frontend=None, backend=None, name="My Shop"):
    return ProjectConfig(kind=kind, language=language, name=name, frontend=frontend, backend=backend)


def test_session_path_is_under_root(scaffolder, tmp_path):
    session = scaffolder.create_session(ProjectConfig.default())
    assert session.terminal_path == f"{tmp_path}/{session.id}/"
    assert scaffolder.get_session(session.id) is session
    assert scaffolder.get_session("missing") is None


def test_discard_by_owner(scaffolder):
    mine = scaffolder.create_session(ProjectConfig.default(), owner="s1")
    other = scaffolder.create_session(ProjectConfig.default(), owner="s2")
    assert scaffolder.discard("s1") == 1
    assert scaffolder.get_session(mine.id) is None
    assert scaffolder.get_session(other.id) is other
    assert scaffolder.discard("s1") == 0


def test_session_from_dict():
    session = Scaffolder().create_session({
        "type": "backend", "language": "javascript",
        "backend": {"framework": "express"}, "name": "api",
    })
    assert session.config.backend.framework == "express"


def test_session_from_bad_dict():
    with pytest.raises(InvalidConfigError):
        Scaffolder().create_session({"type": "backend", "language": "javascript"})


def test_react_tailwind(scaffolder):
    session = scaffolder.create_session(_config("frontend", frontend=FrontendConfig("react", "tailwind")))
    commands = scaffolder.init_commands(session)
    assert commands[:2] == [f"mkdir -p {session.terminal_path}", f"cd {session.terminal_path}"]
    assert commands[2:] == [
        "npx create-react-app my-shop --template typescript",
        "cd my-shop",
        "npm install -D tailwindcss postcss autoprefixer",
        "npx tailwindcss init -p",
    ]


def test_svelte_does_not_cd_twice(scaffolder):
    session = scaffolder.create_session(
        _config("frontend", language="javascript", frontend=FrontendConfig("svelte", "scss"), name="blog"))
    commands = scaffolder.init_commands(session)
    assert commands.count("cd blog") == 1
    assert commands[-1] == "npm install -D sass"


def test_plain_css_adds_nothing(scaffolder):
    session = scaffolder.create_session(_config("frontend", frontend=FrontendConfig("vue", "css"), name="site"))
    assert scaffolder.init_commands(session)[2:] == ["npm install -g @vue/cli", "vue create site --preset typescript"]


def test_express_typescript_postgres(scaffolder):
    session = scaffolder.create_session(_config("backend", backend=BackendConfig("express", "postgres"), name="api"))
    commands = scaffolder.init_commands(session)[2:]
    assert commands == [
        "mkdir -p api", "cd api", "npm init -y",
        "npm install express",
        "npm install -D typescript @types/express @types/node ts-node ts-node-dev",
        "npm install pg", "npm install -D @types/pg",
        "mkdir -p src/routes src/controllers",
    ]


def test_javascript_backend_uses_nodemon(scaffolder):
    session = scaffolder.create_session(
        _config("backend", language="javascript", backend=BackendConfig("koa", "mongodb"), name="api"))
    commands = scaffolder.init_commands(session)
    assert "npm install -D nodemon" in commands
    assert "npm install mongoose" in commands


def test_nest_backend(scaffolder):
    session = scaffolder.create_session(_config("backend", backend=BackendConfig("nest"), name="svc"))
    commands = scaffolder.init_commands(session)[2:]
    assert commands[:3] == ["npm i -g @nestjs/cli", "nest new svc --package-manager npm", "cd svc"]
    assert "npm init -y" not in commands


def test_fullstack_backend_in_sibling_folder(scaffolder):
    session = scaffolder.create_session(_config(
        "fullstack", frontend=FrontendConfig("react", "css"), backend=BackendConfig("fastify", "sqlite"),
        name="shop"))
    commands = scaffolder.init_commands(session)
    assert commands.count(f"cd {session.terminal_path}") == 2
    assert "mkdir -p shop-backend" in commands
    assert "npm install -D @types/sqlite3" in commands
