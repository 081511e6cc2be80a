import pytest

from repo_context_mcp.analysis.models import RepositoryRef
from repo_context_mcp.analysis.repository import parse_repository_ref


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        ("owner/repo", RepositoryRef(owner="owner", name="repo")),
        ("https://github.com/owner/repo", RepositoryRef(owner="owner", name="repo")),
        ("https://anyhost/owner/repo/extra", RepositoryRef(owner="owner", name="repo")),
        ("http://github.com/owner/repo/tree/main/src", RepositoryRef(owner="owner", name="repo")),
        ("  owner/repo  ", RepositoryRef(owner="owner", name="repo")),
    ],
)
def test_parse_valid(identifier: str, expected: RepositoryRef):
    repository = parse_repository_ref(identifier)

    assert repository == expected
    assert repository.is_valid


@pytest.mark.parametrize(
    "identifier",
    [
        "owner",
        "",
        "a/b/c",
        "/repo",
        "owner/",
        "https://github.com/owner",
        "https://github.com/owner/",
        "https://github.com",
        "http://[invalid/owner/repo",
        "ftp://github.com/owner/repo",
    ],
)
def test_parse_invalid(identifier: str):
    repository = parse_repository_ref(identifier)

    assert repository == RepositoryRef(owner="", name="")
    assert not repository.is_valid


def test_parse_keeps_git_suffix():
    assert parse_repository_ref("https://github.com/owner/repo.git") == RepositoryRef(owner="owner", name="repo.git")


class TestAllowedHosts:
    def test_allowed_host(self):
        repository = parse_repository_ref("https://github.com/owner/repo", allowed_hosts={"github.com"})
        assert repository == RepositoryRef(owner="owner", name="repo")

    def test_other_host_rejected(self):
        repository = parse_repository_ref("https://gitlab.com/owner/repo", allowed_hosts={"github.com"})
        assert not repository.is_valid

    def test_bare_identifier_ignores_hosts(self):
        repository = parse_repository_ref("owner/repo", allowed_hosts={"github.com"})
        assert repository == RepositoryRef(owner="owner", name="repo")

    def test_empty_allowlist_accepts_any_host(self):
        repository = parse_repository_ref("https://gitlab.com/owner/repo", allowed_hosts=set())
        assert repository == RepositoryRef(owner="owner", name="repo")
