"""Checks and transformations over an application's source list."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from .errors import ConstraintViolationError, RevisionResolutionError
from .git_local import WorkingTreeProbe, detect_local, origins_match, resolve_revision
from .models import ContentSource, LocalOriginBinding, ReferenceTarget

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "$"


def validate_sources(sources: Sequence[ContentSource]) -> None:
    """
    Enforce the same-origin rule.

    Every source needs an origin. All non-registry sources must share one
    origin (compared normalized); registry sources may come from anywhere.
    Raises ConstraintViolationError on the first violation.
    """
    base: ContentSource | None = None
    base_index = -1
    for i, source in enumerate(sources):
        if not source.origin_location:
            raise ConstraintViolationError(f"source at index {i} has empty repoURL", indices=[i])
        if source.is_registry:
            continue
        if base is None:
            base, base_index = source, i
        elif not origins_match(source.origin_location, base.origin_location):
            raise ConstraintViolationError(
                "all Git repository sources must use the same repository. "
                f"Source at index {i} uses '{source.origin_location}' but source at index "
                f"{base_index} (first Git source) uses '{base.origin_location}'",
                indices=[i, base_index],
                values=[source.origin_location, base.origin_location],
            )


def resolve_binding(
    source: ContentSource,
    probe: WorkingTreeProbe | None = None,
    label: str = "",
    warn: Callable[[str], None] | None = None,
) -> LocalOriginBinding:
    """
    Bind one source to the current working tree, pinning its revision when possible.

    Revision resolution is best-effort: on failure ``warn`` is called (the
    module logger by default) and the binding carries no resolved revision.
    """
    if source.is_registry:
        return LocalOriginBinding()
    binding = detect_local(source.origin_location, probe)
    if not binding.is_local:
        return binding
    logger.info("Detected local repository for %s, using path: %s", label or source.origin_location, binding.working_tree_path)
    try:
        binding.resolved_revision = resolve_revision(binding.working_tree_path, probe)
    except RevisionResolutionError as exc:
        (warn or logger.warning)(f"Failed to resolve local revision: {exc}, using original")
        return binding
    logger.debug("Resolved targetRevision to HEAD: %s", binding.resolved_revision)
    return binding


def resolve_sources(
    sources: Sequence[ContentSource],
    probe: WorkingTreeProbe | None = None,
    app_name: str = "",
    warn: Callable[[str], None] | None = None,
) -> tuple[list[ContentSource], list[LocalOriginBinding]]:
    """
    Return a resolved copy of ``sources`` and one binding per source.

    Locally bound sources are pinned to the checked-out commit. The input
    list and its sources are left untouched.
    """
    resolved: list[ContentSource] = []
    bindings: list[LocalOriginBinding] = []
    for i, source in enumerate(sources):
        binding = resolve_binding(source, probe, label=f"source {i} in {app_name}" if app_name else f"source {i}", warn=warn)
        bindings.append(binding)
        if binding.resolved_revision:
            resolved.append(source.with_revision(binding.resolved_revision))
        else:
            resolved.append(source.model_copy(deep=True))
    return resolved, bindings


def build_references(resolved_sources: Sequence[ContentSource]) -> dict[str, ReferenceTarget]:
    """
    Map ``$name`` to the origin, revision and chart of every named source.

    Must be given the resolved sources so local references carry the pinned
    commit. The path is not part of a reference target.
    """
    references: dict[str, ReferenceTarget] = {}
    for source in resolved_sources:
        if not source.reference_name:
            continue
        references[REFERENCE_PREFIX + source.reference_name] = ReferenceTarget(
            revision_selector=source.revision_selector,
            origin_location=source.origin_location,
            package_name=source.package_name,
        )
    return references


__all__ = [
    "REFERENCE_PREFIX",
    "build_references",
    "resolve_binding",
    "resolve_sources",
    "validate_sources",
]
