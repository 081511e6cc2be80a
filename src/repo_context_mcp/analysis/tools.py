import asyncio
from logging import Logger
from typing import TYPE_CHECKING

from fastmcp.utilities.logging import get_logger
from pydantic import TypeAdapter, ValidationError

from repo_context_mcp.analysis.errors import SummarizationError, ToolArgumentsError, ToolCallError, UnknownToolError
from repo_context_mcp.analysis.models import RepositoryRef, ToolResult
from repo_context_mcp.clients.errors.github import ClientError
from repo_context_mcp.clients.models.chat import ToolCall, ToolDescriptor, ToolParameters, ToolProperty

if TYPE_CHECKING:
    from repo_context_mcp.analysis.notifier import EventNotifier
    from repo_context_mcp.analysis.summarizer import ContextSummarizer
    from repo_context_mcp.clients.github import ContentClient

VIEW_FILE = "view_file"
VIEW_FOLDER = "view_folder"
GENERATE_SUMMARY = "generate_summary"


def _single_string_tool(name: str, description: str, argument: str, argument_description: str) -> ToolDescriptor:
    return ToolDescriptor(
        name=name,
        description=description,
        parameters=ToolParameters(
            properties={argument: ToolProperty(description=argument_description)},
            required=[argument],
        ),
    )


TOOL_CATALOG: tuple[ToolDescriptor, ...] = (
    _single_string_tool(
        name=VIEW_FILE,
        description="View the contents of a file in the repository",
        argument="path",
        argument_description="The path of the file to view",
    ),
    _single_string_tool(
        name=VIEW_FOLDER,
        description="View the contents of a folder in the repository",
        argument="path",
        argument_description="The path of the folder to view",
    ),
    _single_string_tool(
        name=GENERATE_SUMMARY,
        description="Generate a summary of the given content",
        argument="content",
        argument_description="The content to summarize",
    ),
)

TOOL_ARGUMENTS_ADAPTER: TypeAdapter[dict[str, str]] = TypeAdapter(dict[str, str])


def decode_tool_arguments(tool_name: str, raw_arguments: str) -> dict[str, str]:
    """Decode tool call arguments, which must be a flat JSON object of strings."""

    try:
        return TOOL_ARGUMENTS_ADAPTER.validate_json(raw_arguments or "{}", strict=True)
    except ValidationError as e:
        raise ToolArgumentsError(tool_name=tool_name, reason=str(e)) from e


def require_argument(tool_name: str, arguments: dict[str, str], name: str) -> str:
    if name not in arguments:
        raise ToolCallError(tool_name=tool_name, message=f"missing required argument: {name}")
    return arguments[name]


class ToolDispatcher:
    """Executes the tool calls requested by the model against one repository."""

    def __init__(
        self,
        repository: RepositoryRef,
        content_client: "ContentClient",
        summarizer: "ContextSummarizer",
        notifier: "EventNotifier",
        ref: str | None = None,
        timeout: float | None = None,
        logger: Logger | None = None,
    ):
        self.repository: RepositoryRef = repository
        self.content_client: ContentClient = content_client
        self.summarizer: ContextSummarizer = summarizer
        self.notifier: EventNotifier = notifier
        self.ref: str | None = ref
        self.timeout: float | None = timeout
        self.logger: Logger = logger or get_logger(name=__name__)

    async def dispatch(self, tool_call: ToolCall) -> ToolResult:
        return await self.dispatch_named(tool_name=tool_call.name, raw_arguments=tool_call.arguments)

    async def dispatch_named(self, tool_name: str, raw_arguments: str) -> ToolResult:
        """Run one tool. Failures are returned as the error of the result, never raised."""

        try:
            text: str = await self._execute(tool_name=tool_name, raw_arguments=raw_arguments)
        except (ToolCallError, SummarizationError, ClientError) as e:
            self.logger.warning(f"Error executing tool call {tool_name}: {e}")
            return ToolResult.failure(str(e))
        except TimeoutError:
            self.logger.warning(f"Timed out executing tool call {tool_name} after {self.timeout} seconds")
            return ToolResult.failure(f"{tool_name} timed out after {self.timeout} seconds")
        except Exception as e:
            self.logger.exception(f"Unexpected error executing tool call {tool_name}")
            return ToolResult.failure(str(e))

        return ToolResult.success(text)

    async def _execute(self, tool_name: str, raw_arguments: str) -> str:
        arguments: dict[str, str] = decode_tool_arguments(tool_name=tool_name, raw_arguments=raw_arguments)

        owner, repo = self.repository.owner, self.repository.name

        match tool_name:
            case "view_file":
                path: str = require_argument(tool_name, arguments, "path")
                async with asyncio.timeout(self.timeout):
                    content: str = await self.content_client.get_file(owner=owner, repo=repo, path=path, ref=self.ref)
                self.notifier.notify(path)
                return content

            case "view_folder":
                path = require_argument(tool_name, arguments, "path")
                async with asyncio.timeout(self.timeout):
                    return await self.content_client.get_folder(owner=owner, repo=repo, path=path, ref=self.ref)

            case "generate_summary":
                return await self.summarizer.summarize(require_argument(tool_name, arguments, "content"))

            case _:
                raise UnknownToolError(tool_name=tool_name)
