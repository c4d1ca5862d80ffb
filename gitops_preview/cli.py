"""
This file is the entry point for the 'gitops-preview' command-line tool.
Run 'gitops-preview' in your shell to use the CLI.

Previews the Kubernetes resources an Application (or the Applications an
ApplicationSet generates) would produce, without a running GitOps server.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from typing import Optional

import typer
from box import Box

from common.app_setup import print_error, print_warning, setup_logging
from common.config import APP_NAME, load_settings, log_level
from connectors.credentials import ConfigCredentialResolver
from connectors.directory_renderer import DirectoryRenderer
from gitops_preview.presenter import UnknownOutputFormat, check_output_format, print_applications, print_resources
from planner.appset import generate_applications, load_application_sets
from planner.errors import PreviewError
from planner.git_local import GitWorkingTree
from planner.models import Application, load_applications
from planner.plan import PlanOrchestrator
from planner.projector import classify

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Preview the Kubernetes resource manifests produced by GitOps Applications, offline.",
)
app_cmd = typer.Typer(no_args_is_help=True, help="Preview Applications")
appset_cmd = typer.Typer(no_args_is_help=True, help="Preview ApplicationSets")
app.add_typer(app_cmd, name="app")
app.add_typer(appset_cmd, name="appset")

ManifestArg = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Manifest file")
OutputOpt = typer.Option("name", "--output", "-o", help="Output format. One of: name|json|yaml")
KindOpt = typer.Option("", "--kind", "-k", help="Kind of resources to preview")


def _version() -> str:
    try:
        return package_version("gitops-preview")
    except PackageNotFoundError:
        return "dev"


def _version_callback(value: bool):
    if value:
        typer.echo(f"gitops-preview {_version()}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(None, "--version", "-v", callback=_version_callback, is_eager=True,
                                           help="Show the version and exit"),
    config: Optional[Path] = typer.Option(None, "--config", help="Settings file (YAML)"),
):
    try:
        settings = load_settings(config)
        setup_logging(app_name=APP_NAME, loglevel=log_level(settings), logfile=settings.logfile)
    except (OSError, ValueError) as e:
        print_error(f"Invalid settings: {e}")
        raise typer.Exit(1)
    ctx.obj = settings


def _settings(ctx: typer.Context) -> Box:
    return ctx.find_root().obj or load_settings()


def _orchestrator(settings: Box) -> PlanOrchestrator:
    return PlanOrchestrator(
        renderer=DirectoryRenderer(),
        credentials=ConfigCredentialResolver(settings.repositories_file),
        probe=GitWorkingTree(),
        warn=print_warning,
    )


def _check_output(output: str):
    try:
        check_output_format(output)
    except UnknownOutputFormat as e:
        print_error(str(e))
        raise typer.Exit(1)


def _load_apps(filename: Path) -> list[Application]:
    try:
        return load_applications(filename)
    except PreviewError as e:
        print_error(f"failed to construct Application: {e}")
        raise typer.Exit(1)


def _generate_apps(filename: Path) -> list[Application]:
    try:
        appsets = load_application_sets(filename)
        if len(appsets) > 1:
            print_warning(f"found {len(appsets)} ApplicationSets, only previewing the first entry")
        return generate_applications(appsets[0])
    except PreviewError as e:
        print_error(f"failed to generate Application(s): {e}")
        raise typer.Exit(1)


def _show_applications(apps: list[Application], name: str, output: str, filename: Path):
    _check_output(output)
    try:
        print_applications(apps, output, name=name)
    except LookupError:
        print_error(f"Application '{name}' not found in {filename}")
        raise typer.Exit(1)


def _show_resources(ctx: typer.Context, apps: list[Application], name: str, kind: str, output: str):
    _check_output(output)
    orchestrator = _orchestrator(_settings(ctx))
    for application in apps:
        if name and application.name != name:
            continue
        try:
            documents = orchestrator.generate(application)
            resources = classify(documents, kind or None)
        except PreviewError as e:
            scope = "multi-source app" if application.has_multiple_sources() else "app"
            print_error(f"Failed to generate manifests for {scope} '{application.name}': {e}")
            raise typer.Exit(1)
        print_resources(resources, output)


@app_cmd.command("preview")
def preview_app(
    filename: Path = ManifestArg,
    name: str = typer.Option("", "--name", "-n", help="Name of the Application to preview"),
    output: str = OutputOpt,
):
    """Preview Application spec."""
    _show_applications(_load_apps(filename), name, output, filename)


@app_cmd.command("preview-resources")
def preview_app_resources(ctx: typer.Context, filename: Path = ManifestArg, kind: str = KindOpt, output: str = OutputOpt):
    """Preview Kubernetes resource(s) generated from an Application."""
    _show_resources(ctx, _load_apps(filename), "", kind, output)


@appset_cmd.command("preview")
def preview_appset(
    filename: Path = ManifestArg,
    name: str = typer.Option("", "--name", "-n", help="Name of the generated Application to preview"),
    output: str = OutputOpt,
):
    """Preview the Application(s) generated from an ApplicationSet."""
    _show_applications(_generate_apps(filename), name, output, filename)


@appset_cmd.command("preview-resources")
def preview_appset_resources(
    ctx: typer.Context,
    filename: Path = ManifestArg,
    name: str = typer.Option("", "--name", "-n", help="Name of the generated Application to preview"),
    kind: str = KindOpt,
    output: str = OutputOpt,
):
    """Preview Kubernetes resource(s) generated from an ApplicationSet."""
    _show_resources(ctx, _generate_apps(filename), name, kind, output)


if __name__ == "__main__":
    app()
