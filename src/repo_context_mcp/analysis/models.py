from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from repo_context_mcp.analysis.errors import AnalysisError
from repo_context_mcp.clients.models.chat import Message, ToolCall


class RepositoryRef(BaseModel):
    """An (owner, name) pair identifying a repository. Both are empty when parsing failed."""

    model_config = ConfigDict(frozen=True)

    owner: str = ""
    name: str = ""

    @property
    def is_valid(self) -> bool:
        return bool(self.owner and self.name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class ToolResult(BaseModel):
    """The text of a successful tool call, or the reason it failed."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def check_exactly_one(self) -> Self:
        if (self.text is None) == (self.error is None):
            msg = "A tool result carries exactly one of text or error."
            raise ValueError(msg)
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: str) -> Self:
        return cls(text=text)

    @classmethod
    def failure(cls, error: str) -> Self:
        return cls(error=error)

    def to_reply(self) -> str:
        """The content of the function message answering the call."""
        if self.text is not None:
            return self.text
        return f"Error: {self.error}"


class ToolCallOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    tool_call: ToolCall
    result: ToolResult


class AnalysisOutcome(StrEnum):
    COMPLETED = "completed"
    ITERATION_LIMIT_REACHED = "iteration_limit_reached"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ConversationState(BaseModel):
    """The state of one analysis. Created per invocation and discarded afterwards."""

    messages: list[Message] = Field(default_factory=list)
    iteration_count: int = 0
    context_buffer: str = ""
    tool_call_outcomes: list[ToolCallOutcome] = Field(default_factory=list)

    def append_messages(self, *messages: Message) -> None:
        self.messages.extend(messages)

    def append_context(self, tool_name: str, text: str) -> None:
        self.context_buffer += f"{tool_name}:\n{text}\n\n"


class AnalysisResult(BaseModel):
    """Why an analysis ended, and the context it gathered."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    outcome: AnalysisOutcome
    context: str = ""
    iterations: int = 0
    reason: str | None = None
    error: AnalysisError | None = Field(default=None, exclude=True)
    tool_call_outcomes: list[ToolCallOutcome] = Field(default_factory=list)


class AnalysisReport(BaseModel):
    """The text returned to the caller together with the outcome that produced it."""

    outcome: AnalysisOutcome
    text: str
    context: str = ""
    iterations: int = 0
