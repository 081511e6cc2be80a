from logging import Logger
from typing import Literal

import click
from fastmcp import FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import get_logger

from repo_context_mcp.analysis.analyzer import RepositoryAnalyzer
from repo_context_mcp.servers.analysis import AnalysisServer
from repo_context_mcp.settings import AnalyzerSettings

logger: Logger = get_logger(name=__name__)

settings: AnalyzerSettings = AnalyzerSettings.from_env()

if not settings.github_token:
    logger.warning("No GitHub token found. Set GITHUB_TOKEN or GITHUB_PERSONAL_ACCESS_TOKEN to analyze repositories.")

mcp: FastMCP[None] = FastMCP[None](name="Repository Context MCP")

mcp.add_middleware(middleware=LoggingMiddleware(include_payloads=True, logger=logger))

analysis_server: AnalysisServer = AnalysisServer(analyzer=RepositoryAnalyzer.from_settings(settings=settings, logger=logger), logger=logger)
_ = analysis_server.register_tools(fastmcp=mcp)


@click.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
def run_mcp(mcp_transport: Literal["stdio", "streamable-http"]):
    mcp.run(transport=mcp_transport)


if __name__ == "__main__":
    run_mcp()
