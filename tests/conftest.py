import pytest

from repo_context_mcp.analysis.models import RepositoryRef
from repo_context_mcp.analysis.notifier import EventNotifier
from repo_context_mcp.analysis.summarizer import ContextSummarizer
from repo_context_mcp.analysis.tools import ToolDispatcher
from tests.fakes import FakeContentClient, RecordingChannel, ScriptedChatClient, text_response

ROOT_LISTING = "README.md (file)\nsrc (dir)\npyproject.toml (file)\n"
SRC_LISTING = "src/app.py (file)\nsrc/util.py (file)\n"
README = "# Example\n\nAn example repository.\n"
APP_PY = "def main():\n    print('hello')\n"
SUMMARY = "A short summary."


@pytest.fixture
def repository() -> RepositoryRef:
    return RepositoryRef(owner="octo", name="example")


@pytest.fixture
def content_client() -> FakeContentClient:
    return FakeContentClient(
        files={"README.md": README, "src/app.py": APP_PY},
        folders={"": ROOT_LISTING, "src": SRC_LISTING},
    )


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def summary_chat_client() -> ScriptedChatClient:
    """Answers every summary request. Kept apart from the conversation's chat client so turn counts stay exact."""
    return ScriptedChatClient(script=lambda _: text_response(SUMMARY))


@pytest.fixture
def summarizer(summary_chat_client: ScriptedChatClient) -> ContextSummarizer:
    return ContextSummarizer(chat_client=summary_chat_client)


@pytest.fixture
def notifier(channel: RecordingChannel) -> EventNotifier:
    return EventNotifier(channel=channel)


@pytest.fixture
def dispatcher(
    repository: RepositoryRef, content_client: FakeContentClient, summarizer: ContextSummarizer, notifier: EventNotifier
) -> ToolDispatcher:
    return ToolDispatcher(repository=repository, content_client=content_client, summarizer=summarizer, notifier=notifier)
