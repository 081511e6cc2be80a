import asyncio
from logging import Logger
from typing import Self

from fastmcp.utilities.logging import get_logger

from repo_context_mcp.analysis.driver import ConversationDriver
from repo_context_mcp.analysis.errors import AnalysisFailedError, InvalidRepositoryError
from repo_context_mcp.analysis.models import AnalysisOutcome, AnalysisReport, AnalysisResult, RepositoryRef
from repo_context_mcp.analysis.notifier import EventNotifier, NotificationChannel
from repo_context_mcp.analysis.repository import parse_repository_ref
from repo_context_mcp.analysis.summarizer import ContextSummarizer
from repo_context_mcp.analysis.tools import ToolDispatcher
from repo_context_mcp.clients.chat import ChatClient, OpenAIChatClient
from repo_context_mcp.clients.errors.github import MissingCredentialError
from repo_context_mcp.clients.github import ContentClient, RepositoryContentClient
from repo_context_mcp.settings import AnalyzerSettings

INVALID_REPOSITORY_TEXT = "Error: Invalid repository format. Expected 'owner/repo' or a valid GitHub URL."
CANCELLED_TEXT = "Error: The repository analysis was cancelled."


class RepositoryAnalyzer:
    """Answers a prompt about a repository by letting the model explore it with tools.

    `analyze` always returns text: every failure is described in the returned string instead of being raised.
    """

    def __init__(
        self,
        content_client: ContentClient,
        chat_client: ChatClient,
        settings: AnalyzerSettings | None = None,
        logger: Logger | None = None,
    ):
        self.content_client: ContentClient = content_client
        self.chat_client: ChatClient = chat_client
        self.settings: AnalyzerSettings = settings or AnalyzerSettings()
        self.logger: Logger = logger or get_logger(name=__name__)

    @classmethod
    def from_settings(cls, settings: AnalyzerSettings, logger: Logger | None = None) -> Self:
        content_client = RepositoryContentClient(token=settings.github_token, timeout=settings.hosting_timeout, logger=logger)
        chat_client = OpenAIChatClient(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            timeout=settings.chat_timeout,
            logger=logger,
        )
        return cls(content_client=content_client, chat_client=chat_client, settings=settings, logger=logger)

    async def analyze(
        self,
        identifier: str,
        prompt: str,
        channel: NotificationChannel | None = None,
        cancel_event: asyncio.Event | None = None,
        ref: str | None = None,
    ) -> str:
        report: AnalysisReport = await self.run(identifier=identifier, prompt=prompt, channel=channel, cancel_event=cancel_event, ref=ref)
        return report.text

    async def run(
        self,
        identifier: str,
        prompt: str,
        channel: NotificationChannel | None = None,
        cancel_event: asyncio.Event | None = None,
        ref: str | None = None,
    ) -> AnalysisReport:
        """Analyze the repository and report the outcome alongside the text."""

        self.logger.info(f"Analyzing repository {identifier} for prompt: {prompt}")

        repository: RepositoryRef = parse_repository_ref(identifier, allowed_hosts=self.settings.allowed_hosts)
        if not repository.is_valid:
            self.logger.warning(str(InvalidRepositoryError(identifier=identifier)))
            return AnalysisReport(outcome=AnalysisOutcome.FAILED, text=INVALID_REPOSITORY_TEXT)

        summarizer = ContextSummarizer(chat_client=self.chat_client, timeout=self.settings.chat_timeout, logger=self.logger)

        try:
            async with EventNotifier(channel=channel, queue_size=self.settings.notification_queue_size, logger=self.logger) as notifier:
                dispatcher = ToolDispatcher(
                    repository=repository,
                    content_client=self.content_client,
                    summarizer=summarizer,
                    notifier=notifier,
                    ref=ref,
                    timeout=self.settings.hosting_timeout,
                    logger=self.logger,
                )
                driver = ConversationDriver(
                    repository=repository,
                    content_client=self.content_client,
                    chat_client=self.chat_client,
                    dispatcher=dispatcher,
                    max_iterations=self.settings.max_iterations,
                    chat_timeout=self.settings.chat_timeout,
                    hosting_timeout=self.settings.hosting_timeout,
                    ref=ref,
                    logger=self.logger,
                )
                result: AnalysisResult = await driver.run(prompt=prompt, cancel_event=cancel_event)
        except Exception as e:
            self.logger.exception(f"Unexpected error analyzing repository {repository.full_name}")
            return AnalysisReport(outcome=AnalysisOutcome.FAILED, text=f"Error analyzing repository: {e}")

        if result.outcome is AnalysisOutcome.FAILED:
            return AnalysisReport(
                outcome=result.outcome, text=self._failure_text(result), context=result.context, iterations=result.iterations
            )

        if result.outcome is AnalysisOutcome.CANCELLED:
            return AnalysisReport(outcome=result.outcome, text=CANCELLED_TEXT, context=result.context, iterations=result.iterations)

        summary: str = await summarizer.finalize(context=result.context, prompt=prompt)

        return AnalysisReport(outcome=result.outcome, text=summary, context=result.context, iterations=result.iterations)

    def _failure_text(self, result: AnalysisResult) -> str:
        if isinstance(result.error, AnalysisFailedError) and isinstance(result.error.cause, MissingCredentialError):
            return f"Error: {result.error.cause}"

        return f"Error analyzing repository: {result.reason}"
