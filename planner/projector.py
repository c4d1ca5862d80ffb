"""Groups rendered documents by kind for presentation."""

from __future__ import annotations

import json
from typing import Iterable, Mapping

import yaml
from box import Box

from .errors import MalformedDocumentError


def parse_document(document: str, index: int = 0) -> Box:
    """Parse one rendered document (JSON, or YAML as a fallback) into a Box."""
    try:
        payload = json.loads(document)
    except (TypeError, ValueError):
        try:
            payload = yaml.safe_load(document)
        except yaml.YAMLError as exc:
            raise MalformedDocumentError(f"document {index} cannot be parsed: {exc}", index=index) from exc
    if not isinstance(payload, Mapping):
        raise MalformedDocumentError(f"document {index} is not an object", index=index)
    return Box(payload)


def classify(documents: Iterable[str], kind: str | None = None) -> dict[str, list[Box]]:
    """
    Group documents by lower-cased kind, optionally keeping a single kind.

    The returned mapping iterates kinds in lexicographic order; documents
    keep their rendered order within a kind.
    """
    wanted = kind.lower() if kind else None
    grouped: dict[str, list[Box]] = {}
    for index, document in enumerate(documents):
        record = parse_document(document, index)
        record_kind = str(record.get("kind") or "").lower()
        if wanted is not None and record_kind != wanted:
            continue
        grouped.setdefault(record_kind, []).append(record)
    return {k: grouped[k] for k in sorted(grouped)}


def record_name(record: Mapping) -> str:
    metadata = record.get("metadata") or {}
    return str(metadata.get("name", ""))


__all__ = ["classify", "parse_document", "record_name"]
