from typing import Any, Literal, Self

from openai.types.chat import ChatCompletion
from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant", "function"]


class ToolCall(BaseModel):
    """A request from the model to invoke one declared tool."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="The identifier of the tool call, unique within a response.")
    name: str = Field(description="The name of the tool to call.")
    arguments: str = Field(default="{}", description="The arguments to the tool, as raw JSON text.")


class Message(BaseModel):
    """A single message in a chat conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""
    name: str | None = Field(default=None, description="The tool name a function message replies for.")
    tool_call_id: str | None = Field(default=None, description="The tool call a function message replies to.")


def new_message(role: Role, content: str) -> Message:
    return Message(role=role, content=content)


def new_system_message(content: str) -> Message:
    return new_message("system", content)


def new_user_message(content: str) -> Message:
    return new_message("user", content)


def new_function_message(tool_call: ToolCall, content: str) -> Message:
    return Message(role="function", name=tool_call.name, tool_call_id=tool_call.id, content=content)


class ToolProperty(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["string"] = "string"
    description: str


class ToolParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["object"] = "object"
    properties: dict[str, ToolProperty]
    required: list[str] = Field(default_factory=list)


class ToolDescriptor(BaseModel):
    """The schema of a tool the model may call."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: ToolParameters

    def to_openai_tool(self) -> dict[str, Any]:
        return {"type": "function", "function": self.model_dump()}


class ChatOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature: float | None = None
    max_tokens: int | None = None


class ChatChoice(BaseModel):
    """One candidate reply from the model."""

    role: Role = "assistant"
    content: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)


class ChatResponse(BaseModel):
    choices: list[ChatChoice] = Field(default_factory=list)

    @property
    def first_choice(self) -> ChatChoice | None:
        return self.choices[0] if self.choices else None

    @classmethod
    def from_chat_completion(cls, chat_completion: ChatCompletion) -> Self:
        choices: list[ChatChoice] = []

        for choice in chat_completion.choices:
            tool_calls: list[ToolCall] = [
                ToolCall(id=tool_call.id, name=tool_call.function.name, arguments=tool_call.function.arguments)
                for tool_call in choice.message.tool_calls or []
                if tool_call.type == "function"
            ]

            choices.append(ChatChoice(role=choice.message.role, content=choice.message.content or "", tool_calls=tool_calls))

        return cls(choices=choices)
