"""
plan.py
-------
Drives one render call per content source and concatenates the results.

Stages run in a fixed order for multi-source applications:
validate -> resolve local bindings -> build references -> render.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Callable

from connectors.renderer_interface import CredentialResolver, Renderer, RendererError

from .errors import ConfigurationError, RenderingError
from .git_local import WorkingTreeProbe
from .models import Application, ContentSource, LocalOriginBinding, OriginOverride, ReferenceTarget, RenderRequest
from .sources import build_references, resolve_binding, resolve_sources, validate_sources

logger = logging.getLogger(__name__)

LOCAL_ORIGIN_KIND = "git"


def create_override(
    source: ContentSource,
    binding: LocalOriginBinding,
    credentials: CredentialResolver | None = None,
    label: str = "",
) -> OriginOverride:
    """Build the origin override for one source."""
    if binding.is_local:
        # working_tree_path comes from the probe's root resolution
        return OriginOverride(
            location="file://" + PurePath(binding.working_tree_path).as_posix(),
            kind=LOCAL_ORIGIN_KIND,
        )
    logger.debug("Using remote repository for %s: %s", label or "source", source.origin_location)
    username, password = ("", "")
    if credentials is not None:
        username, password = credentials.credentials_for(source.origin_location)
    return OriginOverride(location=source.origin_location, username=username, password=password)


class PlanOrchestrator:
    """
    Produces the combined rendered output of an application.

    Args:
        renderer: renders a single source.
        credentials: credential lookup for remote origins.
        probe: working tree probe; GitWorkingTree when omitted.
        warn: called with degradation warnings (revision pinning failures).
    """

    def __init__(
        self,
        renderer: Renderer,
        credentials: CredentialResolver | None = None,
        probe: WorkingTreeProbe | None = None,
        warn: Callable[[str], None] | None = None,
    ):
        self.renderer = renderer
        self.credentials = credentials
        self.probe = probe
        self.warn = warn

    def generate(self, application: Application) -> list[str]:
        """Render every source of ``application`` and return the documents in source order."""
        sources = application.get_sources()
        if not sources:
            raise ConfigurationError(
                f"Application '{application.name}' has no source configured (.spec.source or .spec.sources)"
            )
        if len(sources) == 1:
            return self._generate_single(application, sources[0])
        return self._generate_multi(application, sources)

    def _generate_single(self, application: Application, source: ContentSource) -> list[str]:
        if not source.origin_location:
            raise ConfigurationError(f"Application '{application.name}' has no valid source configuration")
        binding = resolve_binding(source, self.probe, label=application.name, warn=self.warn)
        if binding.resolved_revision:
            source = source.with_revision(binding.resolved_revision)
        override = create_override(source, binding, self.credentials, label=application.name)
        return self._render(application, 0, source, override, {}, multi_source=False)

    def _generate_multi(self, application: Application, sources: list[ContentSource]) -> list[str]:
        validate_sources(sources)
        resolved, bindings = resolve_sources(sources, self.probe, app_name=application.name, warn=self.warn)
        references = build_references(resolved)
        logger.debug("Reference table for %s: %s", application.name, sorted(references))

        documents: list[str] = []
        for i, source in enumerate(resolved):
            label = f"source {i} in {application.name}"
            override = create_override(source, bindings[i], self.credentials, label=label)
            documents.extend(self._render(application, i, source, override, references, multi_source=True))
        return documents

    def _render(
        self,
        application: Application,
        index: int,
        source: ContentSource,
        override: OriginOverride,
        references: dict[str, ReferenceTarget],
        multi_source: bool,
    ) -> list[str]:
        request = RenderRequest(
            source=source,
            override=override,
            references=references,
            multi_source=multi_source,
            app_name=application.name,
            namespace=application.namespace,
        )
        try:
            documents = self.renderer.render(request)
        except RendererError as exc:
            if multi_source:
                message = f"failed to generate manifests for source {index}: {exc}"
            else:
                message = f"failed to generate manifests: {exc}"
            raise RenderingError(message, index=index) from exc
        logger.debug("Source %d of %s rendered %d document(s)", index, application.name, len(documents))
        return list(documents)


def generate(application: Application, renderer: Renderer, credentials: CredentialResolver | None = None,
             probe: WorkingTreeProbe | None = None) -> list[str]:
    """Shortcut for PlanOrchestrator(renderer, credentials, probe).generate(application)."""
    return PlanOrchestrator(renderer, credentials, probe).generate(application)


__all__ = ["LOCAL_ORIGIN_KIND", "PlanOrchestrator", "create_override", "generate"]
