"""
directory_renderer.py
---------------------
Renders plain manifest directories from the local working tree.

Only local (file://) origin overrides can be rendered: fetching remote
repositories or chart registries is out of reach for an offline tool.
Every YAML/JSON object found under the source path becomes one JSON document.
"""

from __future__ import annotations

import fnmatch
import json
import logging
from pathlib import Path
from typing import Any, Iterator

import yaml

from connectors.renderer_interface import Renderer, RendererError
from planner.models import RenderRequest

logger = logging.getLogger(__name__)

MANIFEST_SUFFIXES = (".yaml", ".yml", ".json")
KUSTOMIZATION_FILES = ("kustomization.yaml", "kustomization.yml", "Kustomization")


class DirectoryRenderer(Renderer):
    """Directory scanner for local sources (``directory.recurse``, ``include`` and ``exclude`` honored)."""

    def render(self, request: RenderRequest) -> list[str]:
        source = request.source
        if source.is_registry:
            raise RendererError(f"chart '{source.package_name}' from {source.origin_location} "
                                "cannot be rendered offline")
        if not request.override.is_local:
            raise RendererError(f"remote repository {request.override.location} cannot be rendered offline; "
                                "run the preview from a checkout of it")
        if not source.path and source.reference_name:
            # a ref-only source only provides files to other sources
            return []
        extra = source.model_extra or {}
        for tool in ("helm", "kustomize", "plugin"):
            if extra.get(tool):
                raise RendererError(f"{tool} sources are not supported by the directory renderer")

        root = Path(request.override.location[len("file://"):])
        target = self._target_dir(root, source.path or ".")
        options = extra.get("directory") or {}
        documents = []
        for manifest in self._manifest_files(target, options):
            for obj in self._load_objects(manifest):
                # YAML timestamps load as date objects; they are rendered as text
                documents.append(json.dumps(obj, sort_keys=True, default=str))
        logger.debug("Rendered %d object(s) from %s", len(documents), target)
        return documents

    @staticmethod
    def _target_dir(root: Path, path: str) -> Path:
        root = root.resolve()
        target = (root / path).resolve()
        if target != root and root not in target.parents:
            raise RendererError(f"path '{path}' escapes the repository root {root}")
        if not target.is_dir():
            raise RendererError(f"path '{path}' is not a directory in {root}")
        if any((target / name).is_file() for name in KUSTOMIZATION_FILES):
            raise RendererError(f"path '{path}' is a kustomization; it cannot be rendered as a plain directory")
        return target

    @staticmethod
    def _manifest_files(target: Path, options: dict[str, Any]) -> list[Path]:
        pattern = "**/*" if options.get("recurse") else "*"
        include = options.get("include") or ""
        exclude = options.get("exclude") or ""
        files = []
        for candidate in sorted(target.glob(pattern)):
            if not candidate.is_file() or candidate.suffix not in MANIFEST_SUFFIXES:
                continue
            relative = candidate.relative_to(target).as_posix()
            if any(part.startswith(".") for part in relative.split("/")):
                continue
            if include and not _matches_any(relative, include):
                continue
            if exclude and _matches_any(relative, exclude):
                continue
            files.append(candidate)
        return files

    @staticmethod
    def _load_objects(manifest: Path) -> Iterator[dict[str, Any]]:
        try:
            documents = list(yaml.safe_load_all(manifest.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise RendererError(f"cannot read {manifest}: {exc}") from exc
        for doc in documents:
            if doc is None:
                continue
            if not isinstance(doc, dict) or "kind" not in doc:
                raise RendererError(f"{manifest} contains a document that is not a Kubernetes object")
            if doc["kind"] == "List":
                yield from (item for item in doc.get("items") or [] if item)
            else:
                yield doc


def _matches_any(path: str, patterns: str) -> bool:
    """Match ``path`` against a glob or a ``{a,b}`` list of globs."""
    patterns = patterns.strip()
    if patterns.startswith("{") and patterns.endswith("}"):
        candidates = [p.strip() for p in patterns[1:-1].split(",")]
    else:
        candidates = [patterns]
    return any(fnmatch.fnmatch(path, p) or fnmatch.fnmatch(Path(path).name, p) for p in candidates if p)


__all__ = ["DirectoryRenderer"]
