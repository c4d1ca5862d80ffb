"""
credentials.py
--------------
Repository credential lookup for remote origins.

Credentials come from a YAML repositories file:

    repositories:
      - url: https://github.com/org/repo.git
        username: bot
        password: s3cret
      - url: https://github.com/org        # prefix entry, matches every repo of org
        username: bot
        passwordEnv: ORG_TOKEN             # read the secret from the environment

An exact (normalized) URL match wins over the longest prefix match. When
nothing matches, GITOPS_PREVIEW_REPO_USERNAME / GITOPS_PREVIEW_REPO_PASSWORD
are used.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Tuple

import yaml
from box import Box, BoxList

from connectors.renderer_interface import CredentialResolver
from planner.git_local import normalize_origin

logger = logging.getLogger(__name__)

USERNAME_ENV = "GITOPS_PREVIEW_REPO_USERNAME"
PASSWORD_ENV = "GITOPS_PREVIEW_REPO_PASSWORD"


class ConfigCredentialResolver(CredentialResolver):
    """
    Looks up credentials in a repositories file, then in the environment.

    Args:
        repositories_file: path of the YAML file; a missing file means no entries.
        environ: environment mapping (os.environ by default).
    """

    def __init__(self, repositories_file: str | Path | None = None, environ: Mapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ
        self.repositories = self._load(repositories_file)

    @staticmethod
    def _load(repositories_file: str | Path | None) -> BoxList:
        if repositories_file is None:
            return BoxList()
        path = Path(repositories_file).expanduser()
        if not path.is_file():
            logger.debug("No repositories file at %s", path)
            return BoxList()
        payload = Box(yaml.safe_load(path.read_text()) or {}, default_box=True)
        entries = payload.repositories or BoxList()
        if not isinstance(entries, BoxList):
            raise ValueError(f"Invalid repositories file {path}: 'repositories' must be a list")
        return entries

    def _match(self, origin_location: str) -> Box | None:
        target = normalize_origin(origin_location)
        best: Box | None = None
        best_len = -1
        for entry in self.repositories:
            url = normalize_origin(str(entry.get("url", "")))
            if not url:
                continue
            if url == target:
                return entry
            prefix = url.rstrip("/") + "/"
            if target.startswith(prefix) and len(prefix) > best_len:
                best, best_len = entry, len(prefix)
        return best

    def credentials_for(self, origin_location: str) -> Tuple[str, str]:
        entry = self._match(origin_location)
        if entry is not None:
            password = entry.get("password") or ""
            if not password and entry.get("passwordEnv"):
                password = self.environ.get(entry.passwordEnv, "")
            return str(entry.get("username") or ""), str(password)
        return self.environ.get(USERNAME_ENV, ""), self.environ.get(PASSWORD_ENV, "")


__all__ = ["ConfigCredentialResolver", "PASSWORD_ENV", "USERNAME_ENV"]
