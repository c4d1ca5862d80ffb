"""Pydantic models for deployment descriptors and the rendering plan."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import DescriptorError

APPLICATION_API_VERSION = "argoproj.io/v1alpha1"
APPLICATION_KIND = "Application"


class ContentSource(BaseModel):
    """One entry of an application's source list."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    origin_location: str = Field(default="", alias="repoURL", description="Repository or registry URL")
    revision_selector: str = Field(default="", alias="targetRevision", description="Branch, tag or commit")
    path: str = Field(default="", description="Repository-relative path")
    package_name: str = Field(default="", alias="chart", description="Chart name, registry sources only")
    reference_name: str = Field(default="", alias="ref", description="Name other sources use to address this one")

    @field_validator("origin_location", "revision_selector", "path", "package_name", "reference_name", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_registry(self) -> bool:
        return bool(self.package_name)

    def with_revision(self, revision: str) -> ContentSource:
        """Return a copy of this source pinned to ``revision``."""
        return self.model_copy(update={"revision_selector": revision}, deep=True)


class Destination(BaseModel):
    model_config = ConfigDict(extra="allow")

    server: str | None = None
    name: str | None = None
    namespace: str = ""


class ApplicationSpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    project: str = "default"
    source: ContentSource | None = None
    sources: list[ContentSource] = Field(default_factory=list)
    destination: Destination = Field(default_factory=Destination)


class ApplicationMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    namespace: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class Application(BaseModel):
    """A deployment descriptor naming one or more content sources."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    api_version: str = Field(default=APPLICATION_API_VERSION, alias="apiVersion")
    kind: str = APPLICATION_KIND
    metadata: ApplicationMetadata
    spec: ApplicationSpec = Field(default_factory=ApplicationSpec)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.spec.destination.namespace

    def get_sources(self) -> list[ContentSource]:
        """Normalize ``spec.source`` / ``spec.sources`` into a list."""
        if self.spec.sources:
            return list(self.spec.sources)
        if self.spec.source is not None:
            return [self.spec.source]
        return []

    def has_multiple_sources(self) -> bool:
        return bool(self.spec.sources)

    def to_manifest(self) -> dict[str, Any]:
        """Serialize back into the descriptor's wire shape."""
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        spec = payload.get("spec", {})
        if not spec.get("sources"):
            spec.pop("sources", None)
        for key in ("labels", "annotations"):
            if not payload["metadata"].get(key):
                payload["metadata"].pop(key, None)
        return payload


class ReferenceTarget(BaseModel):
    """What a ``$name`` reference resolves to. Paths are left to the renderer."""

    model_config = ConfigDict(frozen=True)

    revision_selector: str = ""
    origin_location: str
    package_name: str = ""


class OriginOverride(BaseModel):
    """Connection descriptor handed to the renderer for one source."""

    location: str
    kind: str = ""
    username: str = ""
    password: str = Field(default="", repr=False)

    @property
    def is_local(self) -> bool:
        return self.location.startswith("file://")


@dataclass
class LocalOriginBinding:
    """Result of checking one source against the current working tree."""

    is_local: bool = False
    working_tree_path: str = ""
    resolved_revision: str = ""


@dataclass
class RenderRequest:
    """Everything the renderer needs for one source."""

    source: ContentSource
    override: OriginOverride
    references: dict[str, ReferenceTarget] = field(default_factory=dict)
    multi_source: bool = False
    app_name: str = ""
    namespace: str = ""


# ---------------------------------------------------------------------------
# helpers


def coerce_application(value: Any) -> Application:
    """Normalize supported inputs into an Application instance."""
    if isinstance(value, Application):
        return value
    payload: Mapping[str, Any]
    if isinstance(value, Mapping):
        payload = value
    elif isinstance(value, (str, bytes)):
        payload = _load_text_payload(value)
    elif isinstance(value, Path):
        payload = _load_text_payload(value.read_text())
    else:
        raise TypeError("Unsupported value for an Application")
    try:
        return Application.model_validate(payload)
    except ValidationError as exc:
        raise DescriptorError(f"Invalid Application: {exc}") from exc


def load_documents(path: str | Path) -> list[dict[str, Any]]:
    """Read every YAML (or JSON) document of a descriptor file."""
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise DescriptorError(f"Cannot read {path}: {exc.strerror or exc}") from exc
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as exc:
        raise DescriptorError(f"Cannot parse {path}: {exc}") from exc
    for index, doc in enumerate(documents):
        if not isinstance(doc, Mapping):
            raise DescriptorError(f"Document {index} in {path} is not a mapping")
    return documents


def load_applications(path: str | Path) -> list[Application]:
    """Load the Applications declared in ``path``."""
    apps = []
    for doc in load_documents(path):
        if doc.get("kind", APPLICATION_KIND) != APPLICATION_KIND:
            continue
        apps.append(coerce_application(doc))
    if not apps:
        raise DescriptorError(f"No Application found in {path}")
    return apps


def _load_text_payload(raw: str | bytes) -> dict[str, Any]:
    """Interpret raw text as YAML first, falling back to JSON."""
    text = raw.decode() if isinstance(raw, bytes) else raw
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError:
        return json.loads(text)


__all__ = [
    "APPLICATION_API_VERSION",
    "APPLICATION_KIND",
    "Application",
    "ContentSource",
    "LocalOriginBinding",
    "OriginOverride",
    "ReferenceTarget",
    "RenderRequest",
    "coerce_application",
    "load_applications",
    "load_documents",
]
