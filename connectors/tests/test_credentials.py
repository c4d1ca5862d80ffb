import pytest

from connectors.credentials import PASSWORD_ENV, USERNAME_ENV, ConfigCredentialResolver

REPOSITORIES = """\
repositories:
  - url: https://github.com/example/gitops.git
    username: gitops-bot
    password: exact-secret
  - url: https://github.com/example
    username: org-bot
    passwordEnv: ORG_TOKEN
  - url: https://github.com
    username: anyone
    password: broad
"""


@pytest.fixture
def repositories_file(tmp_path):
    path = tmp_path / "repositories.yaml"
    path.write_text(REPOSITORIES)
    return path


def test_exact_match_wins(repositories_file):
    resolver = ConfigCredentialResolver(repositories_file, environ={})
    assert resolver.credentials_for("git@github.com:Example/gitops.git") == ("gitops-bot", "exact-secret")


def test_longest_prefix_match_with_password_from_environment(repositories_file):
    resolver = ConfigCredentialResolver(repositories_file, environ={"ORG_TOKEN": "t0ken"})
    assert resolver.credentials_for("https://github.com/example/other") == ("org-bot", "t0ken")
    assert resolver.credentials_for("https://github.com/someone/else") == ("anyone", "broad")


def test_prefix_does_not_match_partial_segment(repositories_file):
    resolver = ConfigCredentialResolver(repositories_file, environ={})
    # github.com/example-two is not under github.com/example
    assert resolver.credentials_for("https://github.com/example-two/repo") == ("anyone", "broad")


def test_environment_fallback(tmp_path):
    resolver = ConfigCredentialResolver(tmp_path / "missing.yaml",
                                        environ={USERNAME_ENV: "ci", PASSWORD_ENV: "pw"})
    assert resolver.credentials_for("https://gitlab.com/x/y") == ("ci", "pw")


def test_nothing_configured():
    assert ConfigCredentialResolver(None, environ={}).credentials_for("https://gitlab.com/x/y") == ("", "")


def test_invalid_repositories_file(tmp_path):
    path = tmp_path / "repositories.yaml"
    path.write_text("repositories:\n  url: https://github.com\n")
    with pytest.raises(ValueError):
        ConfigCredentialResolver(path, environ={})
