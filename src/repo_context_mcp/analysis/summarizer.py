import asyncio
from logging import Logger

from fastmcp.utilities.logging import get_logger

from repo_context_mcp.analysis.errors import SummarizationError
from repo_context_mcp.analysis.prompts import (
    CONTEXT_SUMMARIZER_SYSTEM_PROMPT,
    SUMMARIZER_SYSTEM_PROMPT,
    finalize_user_prompt,
    summarize_user_prompt,
)
from repo_context_mcp.clients.chat import ChatClient
from repo_context_mcp.clients.errors.github import ClientError
from repo_context_mcp.clients.models.chat import ChatChoice, ChatOptions, ChatResponse, Message, new_system_message, new_user_message
from repo_context_mcp.utilities.text import estimate_tokens

SUMMARIZATION_FAILED_TEXT = "Error occurred while summarizing the context"
NO_SUMMARY_TEXT = "No summary generated"


class ContextSummarizer:
    """Single-shot, tool-free chat calls that condense text."""

    def __init__(
        self,
        chat_client: ChatClient,
        timeout: float | None = None,
        options: ChatOptions | None = None,
        logger: Logger | None = None,
    ):
        self.chat_client: ChatClient = chat_client
        self.timeout: float | None = timeout
        self.options: ChatOptions | None = options
        self.logger: Logger = logger or get_logger(name=__name__)

    async def _first_choice(self, system_prompt: str, user_prompt: str) -> ChatChoice | None:
        messages: list[Message] = [new_system_message(system_prompt), new_user_message(user_prompt)]

        async with asyncio.timeout(self.timeout):
            response: ChatResponse = await self.chat_client.chat(messages=messages, tools=None, options=self.options)

        return response.first_choice

    async def summarize(self, text: str) -> str:
        """Summarize the text.

        Raises:
            SummarizationError: If the chat call fails, times out, or returns no choices.
        """

        self.logger.info(f"Summarizing content that is {estimate_tokens(text)} tokens.")

        try:
            choice: ChatChoice | None = await self._first_choice(SUMMARIZER_SYSTEM_PROMPT, summarize_user_prompt(text))
        except (ClientError, TimeoutError) as e:
            raise SummarizationError(message="The summary could not be generated.", cause=e) from e

        if choice is None:
            raise SummarizationError(message="no summary generated")

        return choice.content

    async def finalize(self, context: str, prompt: str) -> str:
        """Condense the gathered repository context into an answer to the prompt. Never raises."""

        self.logger.info(f"Summarizing repository context that is {estimate_tokens(context)} tokens.")

        try:
            choice: ChatChoice | None = await self._first_choice(CONTEXT_SUMMARIZER_SYSTEM_PROMPT, finalize_user_prompt(context, prompt))
        except Exception:
            self.logger.exception("Error summarizing context")
            return SUMMARIZATION_FAILED_TEXT

        if choice is None:
            return NO_SUMMARY_TEXT

        return choice.content
