from collections.abc import Sequence
from logging import Logger
from typing import Any, Protocol

from fastmcp.utilities.logging import get_logger
from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletion

from repo_context_mcp.clients.errors.chat import ChatRequestError
from repo_context_mcp.clients.models.chat import ChatOptions, ChatResponse, Message, ToolDescriptor
from repo_context_mcp.settings import DEFAULT_LLM_BASE_URL, DEFAULT_LLM_MODEL
from repo_context_mcp.utilities.text import estimate_tokens


class ChatClient(Protocol):
    """A chat completion endpoint that may request tool calls."""

    async def chat(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDescriptor] | None = None,
        options: ChatOptions | None = None,
    ) -> ChatResponse: ...


def message_to_openai(message: Message) -> dict[str, Any]:
    if message.role == "function":
        return {"role": "function", "name": message.name or "", "content": message.content}

    return {"role": message.role, "content": message.content}


def get_messages_tokens(messages: Sequence[Message]) -> int:
    return sum(estimate_tokens(message.content) for message in messages)


class OpenAIChatClient:
    """Calls an OpenAI-compatible chat completions endpoint (Groq by default)."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_LLM_BASE_URL,
        model: str = DEFAULT_LLM_MODEL,
        timeout: float | None = None,
        openai_client: AsyncOpenAI | None = None,
        logger: Logger | None = None,
    ):
        if openai_client is None and api_key:
            openai_client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

        self.openai_client: AsyncOpenAI | None = openai_client
        self.model: str = model
        self.logger: Logger = logger or get_logger(name=__name__)

    async def chat(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDescriptor] | None = None,
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        if self.openai_client is None:
            raise ChatRequestError(message="No API key is configured for the chat endpoint.", model=self.model)

        request_args: dict[str, Any] = {
            "model": self.model,
            "messages": [message_to_openai(message) for message in messages],
        }

        if tools:
            request_args["tools"] = [tool.to_openai_tool() for tool in tools]

        if options is not None:
            if options.temperature is not None:
                request_args["temperature"] = options.temperature
            if options.max_tokens is not None:
                request_args["max_tokens"] = options.max_tokens

        self.logger.info(
            f"Requesting chat completion from {self.model} with {len(messages)} messages "
            + f"({get_messages_tokens(messages)} tokens) and {len(tools or [])} tools."
        )

        try:
            chat_completion: ChatCompletion = await self.openai_client.chat.completions.create(**request_args)  # pyright: ignore[reportAny]
        except OpenAIError as e:
            raise ChatRequestError(message=str(e), model=self.model) from e

        response: ChatResponse = ChatResponse.from_chat_completion(chat_completion)

        self.logger.debug(f"Chat completion from {self.model} returned {len(response.choices)} choices.")

        return response
