import asyncio

import pytest
import respx
from inline_snapshot import snapshot

from repo_context_mcp.analysis.analyzer import CANCELLED_TEXT, INVALID_REPOSITORY_TEXT, RepositoryAnalyzer
from repo_context_mcp.analysis.models import AnalysisOutcome
from repo_context_mcp.analysis.summarizer import SUMMARIZATION_FAILED_TEXT
from repo_context_mcp.clients.github import RepositoryContentClient
from repo_context_mcp.clients.models.chat import ChatResponse
from repo_context_mcp.settings import AnalyzerSettings
from tests.conftest import README, ROOT_LISTING
from tests.fakes import (
    FakeContentClient,
    RecordingChannel,
    ScriptedChatClient,
    failing_chat_client,
    text_response,
    tool_call,
    tool_calls_response,
)

PROMPT = "What does this repository do?"


def final_answer_client(*turns: ChatResponse, answer: str = "It is an example.") -> ScriptedChatClient:
    """Scripted turns, then a final answer for the finalize call once the model stops calling tools."""
    return ScriptedChatClient(responses=[*turns, text_response("Stop."), text_response(answer)])


class TestAnalyze:
    async def test_happy_path(self, content_client: FakeContentClient, channel: RecordingChannel):
        chat_client = final_answer_client(tool_calls_response(tool_call("view_file", {"path": "README.md"})))
        analyzer = RepositoryAnalyzer(content_client=content_client, chat_client=chat_client)

        report = await analyzer.run(identifier="https://github.com/octo/example", prompt=PROMPT, channel=channel)

        assert report.outcome is AnalysisOutcome.COMPLETED
        assert report.text == "It is an example."
        assert report.context == ROOT_LISTING + f"view_file:\n{README}\n\n"
        assert report.iterations == 2

        finalize_request = chat_client.requests[-1]
        assert finalize_request.tools is None
        assert finalize_request.messages[1].content.endswith(report.context)

        assert [event["data"]["content"] for event in channel.sent] == ["Viewed README.md"]

    async def test_analyze_returns_text(self, content_client: FakeContentClient):
        analyzer = RepositoryAnalyzer(content_client=content_client, chat_client=final_answer_client())

        assert await analyzer.analyze(identifier="octo/example", prompt=PROMPT) == "It is an example."

    async def test_iteration_limit_still_summarizes(self, content_client: FakeContentClient):
        def script(turn: int) -> ChatResponse:
            if turn <= 5:  # noqa: PLR2004
                return tool_calls_response(tool_call("view_folder", {"path": "src"}))
            return text_response("Summary after the limit.")

        chat_client = ScriptedChatClient(script=script)
        analyzer = RepositoryAnalyzer(content_client=content_client, chat_client=chat_client)

        report = await analyzer.run(identifier="octo/example", prompt=PROMPT)

        assert report.outcome is AnalysisOutcome.ITERATION_LIMIT_REACHED
        assert report.text == "Summary after the limit."
        assert len(chat_client.requests) == 6

    async def test_ref_is_used(self, content_client: FakeContentClient):
        analyzer = RepositoryAnalyzer(content_client=content_client, chat_client=final_answer_client())

        _ = await analyzer.analyze(identifier="octo/example", prompt=PROMPT, ref="v1.0.0")

        assert content_client.requests[0].ref == "v1.0.0"


class TestFailures:
    @pytest.mark.parametrize("identifier", ["octo", "", "a/b/c", "https://github.com/octo"])
    async def test_invalid_repository(self, identifier: str, content_client: FakeContentClient):
        chat_client = ScriptedChatClient()
        analyzer = RepositoryAnalyzer(content_client=content_client, chat_client=chat_client)

        assert await analyzer.analyze(identifier=identifier, prompt=PROMPT) == INVALID_REPOSITORY_TEXT
        assert content_client.requests == []
        assert chat_client.requests == []

    async def test_disallowed_host(self, content_client: FakeContentClient):
        analyzer = RepositoryAnalyzer(
            content_client=content_client,
            chat_client=ScriptedChatClient(),
            settings=AnalyzerSettings(allowed_hosts=frozenset({"github.com"})),
        )

        assert await analyzer.analyze(identifier="https://example.com/octo/example", prompt=PROMPT) == INVALID_REPOSITORY_TEXT

    async def test_missing_credential(self, respx_mock: respx.MockRouter):
        chat_client = ScriptedChatClient()
        analyzer = RepositoryAnalyzer(content_client=RepositoryContentClient(token=None), chat_client=chat_client)

        text = await analyzer.analyze(identifier="octo/example", prompt=PROMPT)

        assert text == snapshot(
            "Error: GITHUB_TOKEN environment variable is not set. Please set it to a valid GitHub personal access token with repo scope"
        )
        assert chat_client.requests == []
        assert not respx_mock.calls

    async def test_root_listing_failure(self):
        chat_client = ScriptedChatClient()
        analyzer = RepositoryAnalyzer(content_client=FakeContentClient(), chat_client=chat_client)

        text = await analyzer.analyze(identifier="octo/example", prompt=PROMPT)

        assert text == snapshot(
            "Error analyzing repository: error viewing root folder: A request error occured. (action: Get folder, message: The resource could not be found., resource: /repos/octo/example/contents/)"
        )
        assert chat_client.requests == []

    async def test_chat_failure(self, content_client: FakeContentClient):
        analyzer = RepositoryAnalyzer(content_client=content_client, chat_client=failing_chat_client("503 Service Unavailable"))

        report = await analyzer.run(identifier="octo/example", prompt=PROMPT)

        assert report.outcome is AnalysisOutcome.FAILED
        assert report.text.startswith("Error analyzing repository: error in chat completion: ")
        assert "503 Service Unavailable" in report.text

    async def test_finalize_failure_returns_fallback(self, content_client: FakeContentClient):
        class FailingFinalize(ScriptedChatClient):
            async def chat(self, messages, tools=None, options=None):  # pyright: ignore[reportMissingParameterType]
                if tools is None:
                    self.error = failing_chat_client().error
                return await super().chat(messages, tools, options)

        analyzer = RepositoryAnalyzer(content_client=content_client, chat_client=FailingFinalize(responses=[text_response("Stop.")]))

        report = await analyzer.run(identifier="octo/example", prompt=PROMPT)

        assert report.outcome is AnalysisOutcome.COMPLETED
        assert report.text == SUMMARIZATION_FAILED_TEXT

    async def test_unexpected_error_becomes_text(self):
        class BrokenContentClient(FakeContentClient):
            async def get_folder(self, owner: str, repo: str, path: str, ref: str | None = None) -> str:
                msg = "unexpected"
                raise RuntimeError(msg)

        analyzer = RepositoryAnalyzer(content_client=BrokenContentClient(), chat_client=ScriptedChatClient())

        assert await analyzer.analyze(identifier="octo/example", prompt=PROMPT) == "Error analyzing repository: unexpected"

    async def test_cancelled(self, content_client: FakeContentClient):
        cancel_event = asyncio.Event()
        cancel_event.set()
        analyzer = RepositoryAnalyzer(content_client=content_client, chat_client=ScriptedChatClient())

        report = await analyzer.run(identifier="octo/example", prompt=PROMPT, cancel_event=cancel_event)

        assert report.outcome is AnalysisOutcome.CANCELLED
        assert report.text == CANCELLED_TEXT
