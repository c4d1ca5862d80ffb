import pytest

from planner.errors import DescriptorError
from planner.models import Application, coerce_application, load_applications

MULTI_SOURCE = """\
apiVersion: argoproj.io/v1alpha1
kind: Application
metadata:
  name: shop
spec:
  project: default
  destination:
    server: https://kubernetes.default.svc
    namespace: shop
  sources:
    - repoURL: https://charts.example.com
      chart: web
      targetRevision: 1.2
      helm:
        valueFiles:
          - $values/envs/prod.yaml
    - repoURL: git@github.com:example/gitops.git
      targetRevision: main
      ref: values
---
apiVersion: argoproj.io/v1alpha1
kind: Application
metadata:
  name: docs
spec:
  source:
    repoURL: https://github.com/example/gitops.git
    path: apps/docs
---
apiVersion: v1
kind: ConfigMap
metadata:
  name: ignored
"""


@pytest.fixture
def manifest(tmp_path):
    path = tmp_path / "apps.yaml"
    path.write_text(MULTI_SOURCE)
    return path


def test_load_applications(manifest):
    apps = load_applications(manifest)
    assert [a.name for a in apps] == ["shop", "docs"]

    shop, docs = apps
    assert shop.has_multiple_sources()
    assert shop.namespace == "shop"
    chart, values = shop.get_sources()
    assert chart.is_registry and chart.package_name == "web"
    assert chart.revision_selector == "1.2"
    assert chart.model_extra["helm"]["valueFiles"] == ["$values/envs/prod.yaml"]
    assert values.reference_name == "values" and not values.is_registry

    assert not docs.has_multiple_sources()
    assert [s.path for s in docs.get_sources()] == ["apps/docs"]
    assert docs.get_sources()[0].revision_selector == ""


def test_to_manifest_round_trips_wire_names(manifest):
    shop, docs = load_applications(manifest)
    payload = shop.to_manifest()
    assert payload["apiVersion"] == "argoproj.io/v1alpha1"
    assert payload["spec"]["sources"][0]["chart"] == "web"
    assert payload["spec"]["sources"][0]["helm"] == {"valueFiles": ["$values/envs/prod.yaml"]}
    assert "source" not in payload["spec"]
    assert "sources" not in docs.to_manifest()["spec"]
    assert docs.to_manifest()["spec"]["source"]["repoURL"] == "https://github.com/example/gitops.git"


def test_with_revision_returns_a_copy(manifest):
    shop, _ = load_applications(manifest)
    source = shop.get_sources()[1]
    pinned = source.with_revision("abc123")
    assert pinned.revision_selector == "abc123"
    assert source.revision_selector == "main"
    assert shop.spec.sources[1].revision_selector == "main"


def test_application_without_source_has_empty_list():
    app = coerce_application("metadata:\n  name: bare\n")
    assert isinstance(app, Application)
    assert app.get_sources() == []
    assert not app.has_multiple_sources()


def test_missing_file(tmp_path):
    with pytest.raises(DescriptorError) as excinfo:
        load_applications(tmp_path / "nope.yaml")
    assert "nope.yaml" in str(excinfo.value)


def test_file_without_applications(tmp_path):
    path = tmp_path / "cm.yaml"
    path.write_text("kind: ConfigMap\nmetadata:\n  name: x\n")
    with pytest.raises(DescriptorError):
        load_applications(path)


def test_invalid_application(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("kind: Application\nmetadata: {}\n")
    with pytest.raises(DescriptorError):
        load_applications(path)


def test_unparseable_file(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("kind: Application\nmetadata: [unclosed\n")
    with pytest.raises(DescriptorError):
        load_applications(path)


def test_null_source_fields_are_empty():
    app = coerce_application(
        "metadata:\n  name: nulls\n"
        "spec:\n  source:\n    repoURL: https://github.com/example/gitops.git\n"
        "    targetRevision: null\n    path: apps/web\n    chart: ~\n"
    )
    source = app.get_sources()[0]
    assert source.revision_selector == ""
    assert source.package_name == "" and not source.is_registry
    assert source.path == "apps/web"
