import json
import shutil
import subprocess

import pytest

from connectors.renderer_interface import RendererError
from planner.git_local import ProbeError

ORIGIN = "git@github.com:example/gitops.git"
HEAD_SHA = "0123456789abcdef0123456789abcdef01234567"

WEB_DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
spec:
  replicas: 2
---
apiVersion: v1
kind: Service
metadata:
  name: web
"""

WEB_CONFIG = """\
apiVersion: v1
kind: ConfigMap
metadata:
  name: web-config
data:
  LOG_LEVEL: info
"""


class FakeProbe:
    """Working tree probe with canned answers."""

    def __init__(self, remote=ORIGIN, root="/work/gitops", revision=HEAD_SHA):
        self.remote = remote
        self.root = root
        self.revision = revision
        self.fail_root = False
        self.fail_revision = False
        self.calls = []

    def get_remote_location(self):
        self.calls.append("remote")
        if not self.remote:
            raise ProbeError("not a git repository")
        return self.remote

    def get_root_path(self):
        self.calls.append("root")
        if self.fail_root:
            raise ProbeError("rev-parse --show-toplevel failed")
        return self.root

    def get_revision(self, root_path):
        self.calls.append(("revision", root_path))
        if self.fail_revision:
            raise ProbeError(f"cannot change to '{root_path}'")
        return self.revision


class FakeRenderer:
    """Records every request; source ``i`` renders ``counts[i]`` ConfigMaps."""

    def __init__(self, counts=None, fail_at=None):
        self.counts = counts or []
        self.fail_at = fail_at
        self.requests = []

    def render(self, request):
        index = len(self.requests)
        self.requests.append(request)
        if index == self.fail_at:
            raise RendererError("template error")
        count = self.counts[index] if index < len(self.counts) else 1
        label = request.source.path or request.source.package_name or "root"
        return [
            json.dumps({"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": f"{label}-{n}"}})
            for n in range(count)
        ]


class FakeCredentials:
    def __init__(self):
        self.asked = []

    def credentials_for(self, origin_location):
        self.asked.append(origin_location)
        return "bot", "s3cret"


@pytest.fixture
def local_probe():
    """Probe whose working tree is the example/gitops repository."""
    return FakeProbe()


@pytest.fixture
def no_repo_probe():
    """Probe for a process running outside any working tree."""
    return FakeProbe(remote="")


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def fake_credentials():
    return FakeCredentials()


def _git(cwd, *args):
    return subprocess.run(
        ["git", "-c", "user.email=ci@example.com", "-c", "user.name=ci", "-c", "commit.gpgsign=false", *args],
        cwd=cwd, check=True, capture_output=True, text=True,
    ).stdout.strip()


@pytest.fixture
def git_repo(tmp_path):
    """A committed working tree with origin github.com/example/gitops and a few manifests."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "gitops"
    (repo / "apps" / "web").mkdir(parents=True)
    (repo / "apps" / "web" / "deployment.yaml").write_text(WEB_DEPLOYMENT)
    (repo / "apps" / "web" / "configmap.yml").write_text(WEB_CONFIG)
    (repo / "apps" / "web" / "README.md").write_text("not a manifest\n")
    _git(repo, "init", "-q")
    _git(repo, "remote", "add", "origin", ORIGIN)
    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", "initial manifests")
    return repo.resolve()


@pytest.fixture
def git_head(git_repo):
    return _git(git_repo, "rev-parse", "HEAD")


@pytest.fixture
def isolated_settings(tmp_path, monkeypatch):
    """Keep CLI logging and settings out of the real home directory."""
    monkeypatch.setenv("GITOPS_PREVIEW_LOGFILE", str(tmp_path / "preview.log"))
    monkeypatch.setenv("GITOPS_PREVIEW_CONFIG", str(tmp_path / "missing-config.yaml"))
    monkeypatch.setenv("GITOPS_PREVIEW_REPOSITORIES", str(tmp_path / "missing-repositories.yaml"))
    return tmp_path
