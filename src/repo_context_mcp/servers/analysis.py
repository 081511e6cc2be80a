import json
from logging import Logger
from typing import TYPE_CHECKING, Any

from fastmcp.server import FastMCP
from fastmcp.server.dependencies import get_context
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger

from repo_context_mcp.analysis.analyzer import RepositoryAnalyzer
from repo_context_mcp.servers.shared.annotations import PROMPT, REF, REPOSITORY

if TYPE_CHECKING:
    from fastmcp.server import Context


class ContextNotificationChannel:
    """Forwards notification envelopes to the connected MCP client as log messages."""

    def __init__(self, context: "Context"):
        self.context: Context = context

    async def send_json(self, data: Any) -> None:  # pyright: ignore[reportAny]
        await self.context.info(json.dumps(data))


class AnalysisServer:
    """Exposes repository analysis as an MCP tool."""

    def __init__(self, analyzer: RepositoryAnalyzer, logger: Logger | None = None):
        self.logger: Logger = logger or get_logger(name=__name__)
        self.analyzer: RepositoryAnalyzer = analyzer

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.analyze_repository))

        return fastmcp

    async def analyze_repository(self, repository: REPOSITORY, prompt: PROMPT, ref: REF = None) -> str:
        """Explore a GitHub repository with an LLM and answer the prompt from the files and folders it reads."""

        channel = ContextNotificationChannel(context=get_context())

        return await self.analyzer.analyze(identifier=repository, prompt=prompt, channel=channel, ref=ref)
