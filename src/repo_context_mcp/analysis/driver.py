import asyncio
from logging import Logger

from fastmcp.utilities.logging import get_logger

from repo_context_mcp.analysis.errors import AnalysisFailedError
from repo_context_mcp.analysis.models import (
    AnalysisOutcome,
    AnalysisResult,
    ConversationState,
    RepositoryRef,
    ToolCallOutcome,
    ToolResult,
)
from repo_context_mcp.analysis.prompts import ANALYZER_SYSTEM_PROMPT, analyzer_user_prompt
from repo_context_mcp.analysis.tools import TOOL_CATALOG, ToolDispatcher
from repo_context_mcp.clients.chat import ChatClient
from repo_context_mcp.clients.errors.github import ClientError
from repo_context_mcp.clients.github import ContentClient
from repo_context_mcp.clients.models.chat import (
    ChatChoice,
    ChatOptions,
    ChatResponse,
    Message,
    new_function_message,
    new_system_message,
    new_user_message,
)
from repo_context_mcp.settings import DEFAULT_MAX_ITERATIONS

ROOT_FOLDER_PATH = ""


def is_cancelled(cancel_event: asyncio.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


class ConversationDriver:
    """Runs the bounded tool-calling conversation for one repository.

    The driver seeds the conversation with the root folder listing, then lets the model request tools for up to
    `max_iterations` chat turns. Tool calls run one at a time in the order the model requested them, and each gets
    a function reply, even when it fails. The raw output of every successful call is collected in the context
    buffer, which is returned for summarization.
    """

    def __init__(
        self,
        repository: RepositoryRef,
        content_client: ContentClient,
        chat_client: ChatClient,
        dispatcher: ToolDispatcher,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        chat_timeout: float | None = None,
        hosting_timeout: float | None = None,
        chat_options: ChatOptions | None = None,
        ref: str | None = None,
        logger: Logger | None = None,
    ):
        self.repository: RepositoryRef = repository
        self.content_client: ContentClient = content_client
        self.chat_client: ChatClient = chat_client
        self.dispatcher: ToolDispatcher = dispatcher
        self.max_iterations: int = max_iterations
        self.chat_timeout: float | None = chat_timeout
        self.hosting_timeout: float | None = hosting_timeout
        self.chat_options: ChatOptions | None = chat_options
        self.ref: str | None = ref
        self.logger: Logger = logger or get_logger(name=__name__)

    def _result(self, state: ConversationState, outcome: AnalysisOutcome, error: AnalysisFailedError | None = None) -> AnalysisResult:
        self.logger.info(f"Analysis of {self.repository.full_name} ended after {state.iteration_count} turns: {outcome}")

        return AnalysisResult(
            outcome=outcome,
            context=state.context_buffer,
            iterations=state.iteration_count,
            reason=str(error) if error else None,
            error=error,
            tool_call_outcomes=list(state.tool_call_outcomes),
        )

    def _failed(self, state: ConversationState, action: str, cause: BaseException) -> AnalysisResult:
        error = AnalysisFailedError(action=action, cause=cause)
        self.logger.error(f"Analysis of {self.repository.full_name} failed: {error}")
        return self._result(state, AnalysisOutcome.FAILED, error=error)

    async def run(self, prompt: str, cancel_event: asyncio.Event | None = None) -> AnalysisResult:
        state = ConversationState()

        if is_cancelled(cancel_event):
            return self._result(state, AnalysisOutcome.CANCELLED)

        try:
            async with asyncio.timeout(self.hosting_timeout):
                root_listing: str = await self.content_client.get_folder(
                    owner=self.repository.owner, repo=self.repository.name, path=ROOT_FOLDER_PATH, ref=self.ref
                )
        except (ClientError, TimeoutError) as e:
            return self._failed(state, "viewing root folder", e)

        state.context_buffer = root_listing
        state.append_messages(
            new_system_message(ANALYZER_SYSTEM_PROMPT),
            new_user_message(analyzer_user_prompt(prompt=prompt, root_listing=root_listing)),
        )

        while state.iteration_count < self.max_iterations:
            if is_cancelled(cancel_event):
                return self._result(state, AnalysisOutcome.CANCELLED)

            try:
                async with asyncio.timeout(self.chat_timeout):
                    response: ChatResponse = await self.chat_client.chat(
                        messages=list(state.messages), tools=TOOL_CATALOG, options=self.chat_options
                    )
            except (ClientError, TimeoutError) as e:
                return self._failed(state, "in chat completion", e)

            state.iteration_count += 1

            choice: ChatChoice | None = response.first_choice

            if choice is None or not choice.tool_calls:
                return self._result(state, AnalysisOutcome.COMPLETED)

            self.logger.info(f"Turn {state.iteration_count} of {self.max_iterations} requests {len(choice.tool_calls)} tool calls.")

            if not await self._run_tool_calls(state, choice, cancel_event):
                return self._result(state, AnalysisOutcome.CANCELLED)

        return self._result(state, AnalysisOutcome.ITERATION_LIMIT_REACHED)

    async def _run_tool_calls(self, state: ConversationState, choice: ChatChoice, cancel_event: asyncio.Event | None) -> bool:
        """Dispatch the tool calls of one turn. Returns False if cancelled part way through."""

        outcomes: list[ToolCallOutcome] = []

        for tool_call in choice.tool_calls:
            if is_cancelled(cancel_event):
                return False

            result: ToolResult = await self.dispatcher.dispatch(tool_call)
            outcomes.append(ToolCallOutcome(tool_call=tool_call, result=result))

            if result.text is not None:
                state.append_context(tool_call.name, result.text)
            else:
                self.logger.warning(f"Tool call {tool_call.name} (id: {tool_call.id}) failed: {result.error}")

        state.tool_call_outcomes.extend(outcomes)

        # Function replies come first, then the assistant message that asked for them, with its role and content only.
        state.append_messages(*[new_function_message(outcome.tool_call, outcome.result.to_reply()) for outcome in outcomes])
        state.append_messages(Message(role=choice.role, content=choice.content))

        return True
