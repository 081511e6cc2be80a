from collections.abc import Set
from urllib.parse import SplitResult, urlsplit

from repo_context_mcp.analysis.models import RepositoryRef

URL_PREFIXES = ("http://", "https://")


def parse_repository_ref(identifier: str, allowed_hosts: Set[str] | None = None) -> RepositoryRef:
    """Parse `owner/name` or a repository URL into a RepositoryRef.

    URLs are read positionally: the first path segment is the owner and the second is the name, any further
    segments are ignored. The host of the URL is not checked unless `allowed_hosts` is non-empty.

    Returns an empty RepositoryRef when the identifier has any other shape.
    """

    identifier = identifier.strip()

    if identifier.startswith(URL_PREFIXES):
        return _parse_repository_url(identifier, allowed_hosts=allowed_hosts)

    parts: list[str] = identifier.split("/")
    if len(parts) != 2:  # noqa: PLR2004
        return RepositoryRef()

    return _repository_ref_or_empty(owner=parts[0], name=parts[1])


def _parse_repository_url(identifier: str, allowed_hosts: Set[str] | None) -> RepositoryRef:
    try:
        split_url: SplitResult = urlsplit(identifier)
        hostname: str | None = split_url.hostname
    except ValueError:
        return RepositoryRef()

    if allowed_hosts and (hostname or "") not in allowed_hosts:
        return RepositoryRef()

    parts: list[str] = split_url.path.split("/")
    if len(parts) < 3:  # noqa: PLR2004
        return RepositoryRef()

    return _repository_ref_or_empty(owner=parts[1], name=parts[2])


def _repository_ref_or_empty(owner: str, name: str) -> RepositoryRef:
    if not owner or not name:
        return RepositoryRef()

    return RepositoryRef(owner=owner, name=name)
