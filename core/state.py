"""Workspace state models shared across all stages."""

from __future__ import annotations

import itertools
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from config.stacks import DEFAULT_PROJECT_CONFIG, LANGUAGES, PROJECT_KINDS
from core.errors import InvalidConfigError

SENDERS = ("user", "ai")
MESSAGE_STATUSES = ("thinking", "processing", "complete", "error")
LOADING_STATUSES = ("thinking", "processing")


@dataclass(frozen=True)
class FrontendConfig:
    framework: str
    styling: str
    features: frozenset = frozenset()


@dataclass(frozen=True)
class BackendConfig:
    framework: str
    database: str = "none"


@dataclass(frozen=True)
class ProjectConfig:
    kind: str                   # frontend|backend|fullstack
    language: str               # javascript|typescript
    name: str
    description: str = ""
    frontend: FrontendConfig | None = None
    backend: BackendConfig | None = None

    def __post_init__(self):
        if self.kind not in PROJECT_KINDS:
            raise InvalidConfigError(f"Unknown project type: {self.kind!r}")
        if self.language not in LANGUAGES:
            raise InvalidConfigError(f"Unknown language: {self.language!r}")
        if self.needs_frontend != (self.frontend is not None):
            raise InvalidConfigError(
                f"Frontend configuration must be present exactly for frontend or fullstack projects "
                f"(type={self.kind})"
            )
        if self.needs_backend != (self.backend is not None):
            raise InvalidConfigError(
                f"Backend configuration must be present exactly for backend or fullstack projects "
                f"(type={self.kind})"
            )

    @property
    def needs_frontend(self) -> bool:
        return self.kind in ("frontend", "fullstack")

    @property
    def needs_backend(self) -> bool:
        return self.kind in ("backend", "fullstack")

    @classmethod
    def from_dict(cls, data, fallback_name="generated-project") -> ProjectConfig:
        """Build a config from the classifier's JSON shape.

        Sub-objects the project type does not need are dropped; missing or
        malformed required fields raise InvalidConfigError.
        """
        if not isinstance(data, dict):
            raise InvalidConfigError("Project configuration must be a JSON object")

        kind = _lowered(data.get("type"))
        language = _lowered(data.get("language"))
        name = data.get("name") or fallback_name
        description = data.get("description") or ""
        if not isinstance(name, str) or not isinstance(description, str):
            raise InvalidConfigError("Project name and description must be strings")

        frontend = None
        if kind in ("frontend", "fullstack"):
            fe = data.get("frontend")
            if not isinstance(fe, dict):
                raise InvalidConfigError("Missing frontend configuration")
            features = fe.get("features") or []
            if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
                raise InvalidConfigError("Frontend features must be a list of strings")
            frontend = FrontendConfig(
                framework=_required_str(fe, "framework"),
                styling=_required_str(fe, "styling"),
                features=frozenset(features),
            )

        backend = None
        if kind in ("backend", "fullstack"):
            be = data.get("backend")
            if not isinstance(be, dict):
                raise InvalidConfigError("Missing backend configuration")
            database = be.get("database") or "none"
            if not isinstance(database, str):
                raise InvalidConfigError("Backend database must be a string")
            backend = BackendConfig(framework=_required_str(be, "framework"), database=database)

        return cls(kind=kind, language=language, name=name, description=description,
                   frontend=frontend, backend=backend)

    @classmethod
    def default(cls) -> ProjectConfig:
        return cls.from_dict(DEFAULT_PROJECT_CONFIG)

    def to_dict(self) -> dict:
        data = {
            "type": self.kind,
            "language": self.language,
            "name": self.name,
            "description": self.description,
        }
        if self.frontend is not None:
            data["frontend"] = {
                "framework": self.frontend.framework,
                "styling": self.frontend.styling,
                "features": sorted(self.frontend.features),
            }
        if self.backend is not None:
            data["backend"] = {
                "framework": self.backend.framework,
                "database": self.backend.database,
            }
        return data


def _lowered(value):
    return value.strip().lower() if isinstance(value, str) else value


def _required_str(obj, key):
    value = obj.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidConfigError(f"Missing or empty field: {key}")
    return value.strip().lower()


@dataclass(frozen=True)
class GenerationResult:
    request_id: str
    explanation: str = ""
    raw_code: str | None = None
    diagram_source: str | None = None
    config: ProjectConfig | None = None
    failure: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class ChatMessage:
    id: str
    sender: str                 # user|ai
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    status: str = "complete"    # thinking|processing|complete|error

    @property
    def is_loading(self) -> bool:
        return self.status in LOADING_STATUSES


_request_counter = itertools.count(1)


@dataclass(frozen=True)
class RequestContext:
    """Identity of one generation request, passed through every async step."""

    prompt: str
    features: tuple = ()
    seq: int = field(default_factory=lambda: next(_request_counter))
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def loading_message_id(self) -> str:
        return f"{self.request_id}-reply"
