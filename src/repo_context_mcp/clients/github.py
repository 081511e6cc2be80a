import binascii
from collections.abc import Awaitable, Callable, Sequence
from logging import Logger
from typing import Any, Protocol

from fastmcp.utilities.logging import get_logger
from githubkit import GitHub as GitHubKit
from githubkit.auth.token import TokenAuthStrategy
from githubkit.exception import GitHubException as GitHubKitGitHubException
from githubkit.exception import RequestFailed as GitHubKitRequestFailed
from githubkit.response import Response as GitHubKitResponse
from githubkit.retry import RetryChainDecision, RetryRateLimit, RetryServerError
from githubkit.versions.v2022_11_28.models import ContentFile as GitHubKitContentFile
from pydantic import BaseModel

from repo_context_mcp.clients.errors.github import (
    ContentDecodeError,
    MissingCredentialError,
    RequestError,
    ResourceNotFoundError,
    ResourceTypeMismatchError,
)
from repo_context_mcp.clients.models.github import FolderListing, RepositoryFile

NOT_FOUND_ERROR = 404

GITHUBKIT_RESPONSE_TYPE = BaseModel | Sequence[BaseModel]


class ContentClient(Protocol):
    """Reads files and folder listings from a hosted repository."""

    async def get_file(self, owner: str, repo: str, path: str, ref: str | None = None) -> str: ...

    async def get_folder(self, owner: str, repo: str, path: str, ref: str | None = None) -> str: ...


def extract_response[T: GITHUBKIT_RESPONSE_TYPE](response: GitHubKitResponse[T], /) -> T:
    """Extract the response from a response."""

    return response.parsed_data


def get_githubkit_client(token: str, timeout: float | None = None) -> GitHubKit[Any]:
    # Retry server errors up to 3 times
    retry_server_error = RetryServerError()

    # Retry rate limit errors up to 3 times
    retry_rate_limit = RetryRateLimit(max_retry=3)

    retry_chain = RetryChainDecision(
        retry_server_error,
        retry_rate_limit,
    )

    return GitHubKit[TokenAuthStrategy](auth=TokenAuthStrategy(token=token), auto_retry=retry_chain, timeout=timeout)


class RepositoryContentClient:
    """Reads repository contents through the GitHub REST contents API."""

    githubkit_client: GitHubKit[Any] | None
    logger: Logger

    log_requests: bool
    log_responses: bool

    def __init__(
        self,
        token: str | None = None,
        githubkit_client: GitHubKit[Any] | None = None,
        timeout: float | None = None,
        logger: Logger | None = None,
        log_requests: bool = True,
        log_responses: bool = False,
    ):
        if githubkit_client is None and token:
            githubkit_client = get_githubkit_client(token=token, timeout=timeout)

        self.githubkit_client = githubkit_client
        self.logger = logger or get_logger(name=__name__)
        self.log_requests = log_requests
        self.log_responses = log_responses

    def _require_client(self) -> GitHubKit[Any]:
        if self.githubkit_client is None:
            raise MissingCredentialError

        return self.githubkit_client

    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T:
        """Perform a request and extract the response.

        Raises:
            ResourceNotFoundError: If the resource is not found.
            RequestError: If the request fails for any other reason.
        """

        request_logger = self.logger.info if self.log_requests else self.logger.debug
        response_logger = self.logger.info if self.log_responses else self.logger.debug

        request_logger(f"Performing {action} with kwargs {request_args}")

        try:
            response: GitHubKitResponse[T] = await method(**request_args)
        except GitHubKitRequestFailed as e:
            if e.response.status_code == NOT_FOUND_ERROR:
                raise ResourceNotFoundError(action=action, resource=e.request.url.path) from e

            self.logger.warning(f"RequestFailed error performing {action} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e)) from e
        except GitHubKitGitHubException as e:
            self.logger.warning(f"Error performing {action} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e)) from e

        extracted_response = extract_response(response)

        response_logger(f"Extracted response for {action} with kwargs {request_args}: {extracted_response}")

        return extracted_response

    async def _get_content(self, action: str, owner: str, repo: str, path: str, ref: str | None) -> Any:  # pyright: ignore[reportAny]
        githubkit_client = self._require_client()

        request_args: dict[str, str] = {"owner": owner, "repo": repo, "path": path}
        if ref:
            request_args["ref"] = ref

        return await self._perform_rest_request(  # pyright: ignore[reportAny]
            action=action,
            method=githubkit_client.rest.repos.async_get_content,
            **request_args,
        )

    async def get_repository_file(self, owner: str, repo: str, path: str, ref: str | None = None) -> RepositoryFile:
        """Get a file from a repository.

        Args:
            owner: The owner of the repository.
            repo: The name of the repository.
            path: The path of the file.
            ref: The ref of the branch or tag to get the file from. If not provided, the default branch will be used.
        """

        content = await self._get_content(action="Get file", owner=owner, repo=repo, path=path, ref=ref)  # pyright: ignore[reportAny]

        if not isinstance(content, GitHubKitContentFile):
            raise ResourceTypeMismatchError(action="Get file", resource=path, expected_type="file", actual_type=type(content).__name__)

        if content.encoding != "base64":
            raise ContentDecodeError(action="Get file", resource=path, reason=f"unexpected file encoding: {content.encoding}")

        try:
            return RepositoryFile.from_content_file(content_file=content)
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ContentDecodeError(action="Get file", resource=path, reason=str(e)) from e

    async def get_folder_listing(self, owner: str, repo: str, path: str, ref: str | None = None) -> FolderListing:
        """Get the entries of a folder in a repository.

        Args:
            owner: The owner of the repository.
            repo: The name of the repository.
            path: The path of the folder. An empty path is the root of the repository.
            ref: The ref of the branch or tag to list the folder on. If not provided, the default branch will be used.
        """

        content = await self._get_content(action="Get folder", owner=owner, repo=repo, path=path, ref=ref)  # pyright: ignore[reportAny]

        if not isinstance(content, list):
            raise ResourceTypeMismatchError(action="Get folder", resource=path, expected_type="dir", actual_type=type(content).__name__)  # pyright: ignore[reportAny]

        return FolderListing.from_content_directory(path=path, items=content)  # pyright: ignore[reportUnknownArgumentType]

    async def get_file(self, owner: str, repo: str, path: str, ref: str | None = None) -> str:
        repository_file: RepositoryFile = await self.get_repository_file(owner=owner, repo=repo, path=path, ref=ref)
        return repository_file.content

    async def get_folder(self, owner: str, repo: str, path: str, ref: str | None = None) -> str:
        folder_listing: FolderListing = await self.get_folder_listing(owner=owner, repo=repo, path=path, ref=ref)
        return folder_listing.to_text()
