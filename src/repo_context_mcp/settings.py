import os
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_LLM_MODEL = "llama-3.3-70b-versatile"

DEFAULT_MAX_ITERATIONS = 5
DEFAULT_CHAT_TIMEOUT = 60.0
DEFAULT_HOSTING_TIMEOUT = 30.0
DEFAULT_NOTIFICATION_QUEUE_SIZE = 100


def first_env(*names: str) -> str | None:
    for name in names:
        if value := os.getenv(name):
            return value
    return None


class AnalyzerSettings(BaseModel):
    """Configuration for a repository analyzer. Core code only ever receives this by injection."""

    model_config = ConfigDict(frozen=True)

    github_token: str | None = Field(default=None, description="The token used to authenticate against the GitHub API.")
    llm_api_key: str | None = Field(default=None, description="The API key for the OpenAI-compatible chat endpoint.")
    llm_base_url: str = Field(default=DEFAULT_LLM_BASE_URL, description="The base URL of the OpenAI-compatible chat endpoint.")
    llm_model: str = Field(default=DEFAULT_LLM_MODEL, description="The model used for every chat call.")

    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, ge=1, description="The maximum number of chat turns per analysis.")
    chat_timeout: float = Field(default=DEFAULT_CHAT_TIMEOUT, gt=0, description="Seconds to wait for a single chat call.")
    hosting_timeout: float = Field(default=DEFAULT_HOSTING_TIMEOUT, gt=0, description="Seconds to wait for a single GitHub call.")
    notification_queue_size: int = Field(
        default=DEFAULT_NOTIFICATION_QUEUE_SIZE, ge=1, description="The number of notifications that may wait to be written."
    )

    allowed_hosts: frozenset[str] = Field(
        default=frozenset(),
        description="Hosts accepted in URL repository identifiers. Empty accepts any host.",
    )

    @classmethod
    def from_env(cls) -> Self:
        """Build settings from the process environment. Only called at process start."""

        allowed_hosts: str = os.getenv("ALLOWED_HOSTS", "")

        return cls(
            github_token=first_env("GITHUB_TOKEN", "GITHUB_PERSONAL_ACCESS_TOKEN"),
            llm_api_key=first_env("GROQ_API_KEY", "OPENAI_API_KEY"),
            llm_base_url=os.getenv("LLM_BASE_URL") or DEFAULT_LLM_BASE_URL,
            llm_model=os.getenv("LLM_MODEL") or DEFAULT_LLM_MODEL,
            allowed_hosts=frozenset(host.strip().lower() for host in allowed_hosts.split(",") if host.strip()),
        )
