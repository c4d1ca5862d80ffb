"""
appset.py
---------
Expands an ApplicationSet into Applications.

Supported generators are ``list``, ``matrix`` and ``merge``. Matrix and merge
combine the parameter sets of their child generators; they nest one level
deep, below which only ``list`` is accepted. Each parameter set yields one
Application from the template, with ``{{key}}`` placeholders replaced by its
values (nested values are addressed as ``{{a.b}}``). Unknown placeholders
are left in place.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import chevron
from chevron.tokenizer import ChevronError

from .errors import DescriptorError
from .models import APPLICATION_API_VERSION, APPLICATION_KIND, Application, coerce_application, load_documents

logger = logging.getLogger(__name__)

APPLICATION_SET_KIND = "ApplicationSet"

GENERATOR_KINDS = ("list", "matrix", "merge")
TERMINAL_GENERATOR_KINDS = ("list",)
# top level and one nested level may combine generators
MAX_COMBINING_DEPTH = 1


def load_application_sets(path: str | Path) -> list[dict[str, Any]]:
    """Return the raw ApplicationSet documents found in ``path``."""
    appsets = [doc for doc in load_documents(path) if doc.get("kind") == APPLICATION_SET_KIND]
    if not appsets:
        raise DescriptorError(f"No ApplicationSet found in {path}")
    return appsets


def template_params(element: Mapping[str, Any]) -> dict[str, Any]:
    """Turn element values into template text, keeping nested mappings for dotted access."""
    params: dict[str, Any] = {}
    for key, value in element.items():
        if isinstance(value, Mapping):
            params[str(key)] = template_params(value)
        elif value is None:
            params[str(key)] = ""
        elif isinstance(value, bool):
            params[str(key)] = str(value).lower()
        else:
            params[str(key)] = str(value)
    return params


def render_template(value: Any, params: Mapping[str, Any]) -> Any:
    """Substitute ``{{key}}`` placeholders in every string of ``value``."""
    if isinstance(value, str):
        if "{{" not in value:
            return value
        # every tag is a plain, unescaped variable; sections and partials do not apply here
        try:
            return chevron.render(value.replace("{{", "{{&"), params, keep=True)
        except ChevronError as exc:
            raise DescriptorError(f"invalid template {value!r}: {exc}") from exc
    if isinstance(value, Mapping):
        return {render_template(k, params): render_template(v, params) for k, v in value.items()}
    if isinstance(value, list):
        return [render_template(item, params) for item in value]
    return value


def _merge_params(base: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in update.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge_params(merged[key], value)
        else:
            merged[key] = value
    return merged


def _lookup(params: Mapping[str, Any], dotted: str) -> Any:
    value: Any = params
    for part in dotted.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value


def list_generator_elements(generator: Mapping[str, Any]) -> list[dict[str, Any]]:
    elements = (generator.get("list") or {}).get("elements") or []
    for element in elements:
        if not isinstance(element, Mapping):
            raise DescriptorError("list generator elements must be mappings")
    return [template_params(element) for element in elements]


def matrix_params(matrix: Mapping[str, Any], depth: int = 0) -> list[dict[str, Any]]:
    """Cartesian product of the parameter sets of exactly two child generators."""
    children = (matrix or {}).get("generators") or []
    if len(children) != 2:
        raise DescriptorError(f"matrix generator needs exactly 2 child generators, found {len(children)}")
    first, second = (generator_params(child, depth + 1) for child in children)
    return [_merge_params(a, b) for a in first for b in second]


def merge_params(merge: Mapping[str, Any], depth: int = 0) -> list[dict[str, Any]]:
    """
    Merge the parameter sets of the child generators into those of the first one.

    Sets are paired by the values of ``mergeKeys``; later generators win on
    conflicting values. Sets of later generators without a partner are dropped.
    """
    merge = merge or {}
    merge_keys = merge.get("mergeKeys") or []
    children = merge.get("generators") or []
    if not merge_keys:
        raise DescriptorError("merge generator needs mergeKeys")
    if len(children) < 2:
        raise DescriptorError(f"merge generator needs at least 2 child generators, found {len(children)}")

    def key_of(params):
        return tuple(str(_lookup(params, key)) for key in merge_keys)

    def index(param_sets):
        indexed: dict[tuple, dict[str, Any]] = {}
        for params in param_sets:
            key = key_of(params)
            if key in indexed:
                raise DescriptorError(f"merge generator found duplicate mergeKeys values {list(key)}")
            indexed[key] = params
        return indexed

    merged = index(generator_params(children[0], depth + 1))
    for child in children[1:]:
        for key, params in index(generator_params(child, depth + 1)).items():
            if key in merged:
                merged[key] = _merge_params(merged[key], params)
    return list(merged.values())


def generator_params(generator: Mapping[str, Any], depth: int = 0) -> list[dict[str, Any]]:
    """Parameter sets produced by one generator entry."""
    allowed = GENERATOR_KINDS if depth <= MAX_COMBINING_DEPTH else TERMINAL_GENERATOR_KINDS
    if not isinstance(generator, Mapping):
        raise DescriptorError("ApplicationSet generators must be mappings")
    kinds = [kind for kind in generator if kind in GENERATOR_KINDS]
    if len(kinds) != 1 or kinds[0] not in allowed:
        found = ", ".join(sorted(generator)) or "none"
        raise DescriptorError(
            f"Unsupported ApplicationSet generator ({found}); expected one of: {', '.join(allowed)}"
        )
    kind = kinds[0]
    if kind == "matrix":
        return matrix_params(generator["matrix"], depth)
    if kind == "merge":
        return merge_params(generator["merge"], depth)
    return list_generator_elements(generator)


def generate_applications(appset: Mapping[str, Any]) -> list[Application]:
    """Expand one ApplicationSet document into Applications."""
    spec = appset.get("spec") or {}
    template = spec.get("template")
    if not isinstance(template, Mapping):
        raise DescriptorError("ApplicationSet has no template")
    generators = spec.get("generators") or []
    if not generators:
        raise DescriptorError("ApplicationSet has no generators")

    apps = []
    for generator in generators:
        for params in generator_params(generator):
            rendered = render_template(template, params)
            rendered = {"apiVersion": APPLICATION_API_VERSION, "kind": APPLICATION_KIND, **rendered}
            apps.append(coerce_application(rendered))
    logger.debug("ApplicationSet %s generated %d application(s)",
                 (appset.get("metadata") or {}).get("name", "?"), len(apps))
    return apps


__all__ = [
    "APPLICATION_SET_KIND",
    "generate_applications",
    "generator_params",
    "load_application_sets",
    "matrix_params",
    "merge_params",
    "render_template",
    "template_params",
]
