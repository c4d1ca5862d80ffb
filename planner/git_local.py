"""
git_local.py
------------
Detects whether an origin is the working tree the tool runs from.

Origins are compared after normalization, so the SSH shorthand, HTTPS and
HTTP spellings of one repository are equal. The working tree is inspected
through a small probe protocol; GitWorkingTree is the default probe and
shells out to the git binary.
"""

from __future__ import annotations

import logging
import re
import subprocess
from typing import Protocol

from .errors import EnvironmentProbeError, RevisionResolutionError
from .models import LocalOriginBinding

logger = logging.getLogger(__name__)


class ProbeError(Exception):
    """A working tree query failed."""


class WorkingTreeProbe(Protocol):
    """Interface Protocol for inspecting the ambient working tree."""
    def get_remote_location(self) -> str:
        """Configured primary remote location. Raises ProbeError if unavailable."""
        ...

    def get_root_path(self) -> str:
        """Top-level directory of the working tree. Raises ProbeError."""
        ...

    def get_revision(self, root_path: str) -> str:
        """Commit checked out in ``root_path``. Raises ProbeError."""
        ...


class GitWorkingTree(WorkingTreeProbe):
    """Probe backed by the git command line, run in ``cwd`` (the process cwd by default)."""

    def __init__(self, git: str = "git", cwd: str | None = None):
        self.git = git
        self.cwd = cwd

    def _run(self, *args: str) -> str:
        cmd = [self.git, *args]
        try:
            proc = subprocess.run(cmd, cwd=self.cwd, capture_output=True, text=True, check=True)
        except OSError as exc:
            raise ProbeError(f"cannot run {self.git}: {exc}") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise ProbeError(f"'{' '.join(cmd)}' failed: {detail}") from exc
        return proc.stdout.strip()

    def get_remote_location(self) -> str:
        return self._run("config", "--get", "remote.origin.url")

    def get_root_path(self) -> str:
        return self._run("rev-parse", "--show-toplevel")

    def get_revision(self, root_path: str) -> str:
        return self._run("-C", root_path, "rev-parse", "HEAD")


# user@host:owner/repo, only for locations without a scheme
_SSH_SHORTHAND = re.compile(r"^[^@/:]+@([^/:]+):(?!//)(.*)$")


def _normalize_once(origin: str) -> str:
    for scheme in ("https://", "http://"):
        if origin.startswith(scheme):
            authority, sep, rest = origin[len(scheme):].partition("/")
            # user info is not part of the repository identity; the port is
            origin = authority.rpartition("@")[2] + sep + rest
            break
    else:
        match = _SSH_SHORTHAND.match(origin) if "://" not in origin else None
        if match:
            origin = f"{match.group(1)}/{match.group(2)}"
    if origin.endswith(".git"):
        origin = origin[:-len(".git")]
    return origin.lower()


def normalize_origin(origin: str) -> str:
    """
    Convert an origin location into a comparable form.

        git@github.com:owner/repo.git              -> github.com/owner/repo
        https://github.com/owner/repo.git          -> github.com/owner/repo
        https://deploy@git.example.com:8443/x/y    -> git.example.com:8443/x/y

    Ports and trailing slashes are kept.
    """
    # applied until stable so the result is a fixed point
    normalized = _normalize_once(origin)
    while normalized != origin:
        origin, normalized = normalized, _normalize_once(normalized)
    return normalized


def origins_match(a: str, b: str) -> bool:
    return normalize_origin(a) == normalize_origin(b)


def detect_local(origin: str, probe: WorkingTreeProbe | None = None) -> LocalOriginBinding:
    """
    Check ``origin`` against the remote of the current working tree.

    Not being inside a working tree, or having no remote, means "not local".
    A match whose root directory cannot be resolved raises EnvironmentProbeError.
    """
    probe = probe or GitWorkingTree()
    try:
        current = probe.get_remote_location()
    except ProbeError as exc:
        logger.debug("No working tree remote available: %s", exc)
        return LocalOriginBinding()
    if not current or not origins_match(current, origin):
        return LocalOriginBinding()
    try:
        root = probe.get_root_path()
    except ProbeError as exc:
        raise EnvironmentProbeError(
            f"'{origin}' matches the current working tree but its root could not be resolved: {exc}"
        ) from exc
    return LocalOriginBinding(is_local=True, working_tree_path=root)


def resolve_revision(root_path: str, probe: WorkingTreeProbe | None = None) -> str:
    """Resolve the commit checked out in ``root_path``."""
    probe = probe or GitWorkingTree()
    try:
        sha = probe.get_revision(root_path)
    except ProbeError as exc:
        raise RevisionResolutionError(f"failed to resolve HEAD in {root_path}: {exc}", path=root_path) from exc
    if not sha:
        raise RevisionResolutionError(f"failed to resolve HEAD in {root_path}: empty revision", path=root_path)
    return sha


__all__ = [
    "GitWorkingTree",
    "ProbeError",
    "WorkingTreeProbe",
    "detect_local",
    "normalize_origin",
    "origins_match",
    "resolve_revision",
]
