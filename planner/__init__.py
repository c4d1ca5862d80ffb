"""Core planning package: source resolution, reference tables and the rendering plan."""

from .errors import (
    ConfigurationError,
    ConstraintViolationError,
    DescriptorError,
    EnvironmentProbeError,
    MalformedDocumentError,
    PreviewError,
    RenderingError,
    RevisionResolutionError,
)
from .models import Application, ContentSource, OriginOverride, ReferenceTarget, RenderRequest, load_applications
from .git_local import GitWorkingTree, WorkingTreeProbe, detect_local, normalize_origin, resolve_revision
from .sources import build_references, resolve_sources, validate_sources
from .projector import classify
from .plan import PlanOrchestrator, generate

__all__ = [
    "Application",
    "ConfigurationError",
    "ConstraintViolationError",
    "ContentSource",
    "DescriptorError",
    "EnvironmentProbeError",
    "GitWorkingTree",
    "MalformedDocumentError",
    "OriginOverride",
    "PlanOrchestrator",
    "PreviewError",
    "ReferenceTarget",
    "RenderRequest",
    "RenderingError",
    "RevisionResolutionError",
    "WorkingTreeProbe",
    "build_references",
    "classify",
    "detect_local",
    "generate",
    "load_applications",
    "normalize_origin",
    "resolve_revision",
    "resolve_sources",
    "validate_sources",
]
