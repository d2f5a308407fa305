"""Scaffolder: bootstrap shell commands for a classified project. Zero LLM calls."""

import os
import shlex
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from config.defaults import DEFAULTS
from config.stacks import (
    BACKEND_PACKAGES,
    DATABASE_PACKAGES,
    FRONTEND_ENTERS_PROJECT,
    FRONTEND_INIT,
    STYLING_PACKAGES,
)
from core.state import ProjectConfig
from utils.folder_naming import slugify


@dataclass(frozen=True)
class ProjectSession:
    id: str
    config: ProjectConfig
    terminal_path: str
    owner: str | None = None
    created_at: datetime = field(default_factory=datetime.now)


class Scaffolder:
    """Creates project sessions and the commands the terminal should run for them.

    The commands are only produced here; executing them is the terminal
    backend's job.
    """

    def __init__(self, root=None):
        self.root = root or DEFAULTS["terminal_root"]
        self.sessions = {}
        self._lock = threading.Lock()

    def create_session(self, config, owner=None):
        """Accepts a ProjectConfig or its dict form (validated, may raise InvalidConfigError)."""
        if isinstance(config, dict):
            config = ProjectConfig.from_dict(config)
        session_id = uuid.uuid4().hex
        session = ProjectSession(
            id=session_id,
            config=config,
            terminal_path=os.path.join(self.root, session_id) + "/",
            owner=owner,
        )
        with self._lock:
            self.sessions[session_id] = session
        return session

    def get_session(self, session_id):
        return self.sessions.get(session_id)

    def discard(self, owner):
        """Forget every project session created for owner; returns how many went."""
        with self._lock:
            stale = [sid for sid, s in self.sessions.items() if s.owner == owner]
            for sid in stale:
                del self.sessions[sid]
        return len(stale)

    def init_commands(self, session):
        path = shlex.quote(session.terminal_path)
        config = session.config
        name = slugify(config.name).replace("_", "-") or "app"
        commands = [f"mkdir -p {path}", f"cd {path}"]

        if config.frontend is not None:
            commands += self._frontend_commands(config, name)
        if config.backend is not None:
            if config.kind == "fullstack":
                commands.append(f"cd {path}")
                name = f"{name}-backend"
            commands += self._backend_commands(config, name)
        return commands

    def _frontend_commands(self, config, name):
        framework = config.frontend.framework
        by_language = FRONTEND_INIT.get(framework)
        if by_language is None:
            return []
        commands = [c.format(name=name) for c in by_language[config.language]]
        styling = STYLING_PACKAGES.get(config.frontend.styling, [])
        if styling:
            if framework not in FRONTEND_ENTERS_PROJECT:
                commands.append(f"cd {name}")
            commands += styling
        return commands

    def _backend_commands(self, config, backend_dir):
        framework = config.backend.framework
        typescript = config.language == "typescript"
        runtime, typings = BACKEND_PACKAGES.get(framework, ([], []))

        if framework == "nest":
            commands = [c.format(name=backend_dir) for c in runtime]
            commands.append(f"cd {backend_dir}")
        else:
            commands = [f"mkdir -p {backend_dir}", f"cd {backend_dir}", "npm init -y"]
            commands += runtime
            commands += typings if typescript else ["npm install -D nodemon"]

        database = DATABASE_PACKAGES.get(config.backend.database)
        if database is not None:
            package, db_typings = database
            commands.append(package)
            if typescript and db_typings:
                commands.append(db_typings)

        commands.append("mkdir -p src/routes src/controllers")
        return commands
