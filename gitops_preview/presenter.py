"""
presenter.py
------------
Prints applications and rendered resources as name lists, JSON or YAML.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

import typer
import yaml
from box import Box

from planner.models import Application
from planner.projector import record_name

OUTPUT_FORMATS = ("name", "json", "yaml")


class UnknownOutputFormat(ValueError):
    def __init__(self, output: str):
        super().__init__(f"unknown output format: {output}")


def check_output_format(output: str) -> str:
    if output not in OUTPUT_FORMATS:
        raise UnknownOutputFormat(output)
    return output


def _plain(obj: Any) -> Any:
    if isinstance(obj, Box):
        return obj.to_dict()
    if isinstance(obj, Application):
        return obj.to_manifest()
    return obj


def format_resource(obj: Any, output: str) -> str:
    """Serialize a single object."""
    payload = _plain(obj)
    if output == "json":
        return json.dumps(payload, indent=2)
    return yaml.safe_dump(payload, sort_keys=False).rstrip("\n")


def format_resource_list(objs: Iterable[Any], output: str) -> str:
    """Serialize a list of objects: a JSON array, or YAML documents separated by ---."""
    payloads = [_plain(obj) for obj in objs]
    if output == "json":
        return json.dumps(payloads, indent=2)
    return "\n---\n".join(yaml.safe_dump(p, sort_keys=False).rstrip("\n") for p in payloads)


def print_resources(resources: Mapping[str, list[Box]], output: str) -> None:
    """Print grouped resources; kinds are listed in lexicographic order."""
    check_output_format(output)
    kinds = sorted(resources)
    if output == "name":
        for i, kind in enumerate(kinds):
            if i > 0:
                typer.echo()
            typer.echo("NAME")
            for record in resources[kind]:
                typer.echo(f"{kind}/{record_name(record)}")
        return
    for kind in kinds:
        typer.echo(format_resource_list(resources[kind], output))


def print_applications(apps: list[Application], output: str, name: str = "") -> None:
    """
    Print applications, optionally only the one called ``name``.
    Raises LookupError when ``name`` is given for json/yaml output and no application matches.
    """
    check_output_format(output)
    if output == "name":
        typer.echo("NAME")
        for app in apps:
            if not name or app.name == name:
                typer.echo(f"application/{app.name}")
        return
    if name:
        for app in apps:
            if app.name == name:
                typer.echo(format_resource(app, output))
                return
        raise LookupError(f"Application '{name}' not found")
    typer.echo(format_resource_list(apps, output))


__all__ = [
    "OUTPUT_FORMATS",
    "UnknownOutputFormat",
    "check_output_format",
    "format_resource",
    "format_resource_list",
    "print_applications",
    "print_resources",
]
