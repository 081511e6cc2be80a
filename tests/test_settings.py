import pytest

from repo_context_mcp.settings import DEFAULT_LLM_BASE_URL, DEFAULT_LLM_MODEL, AnalyzerSettings

ENVIRONMENT_VARIABLES = [
    "GITHUB_TOKEN",
    "GITHUB_PERSONAL_ACCESS_TOKEN",
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
    "LLM_BASE_URL",
    "LLM_MODEL",
    "ALLOWED_HOSTS",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    for name in ENVIRONMENT_VARIABLES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = AnalyzerSettings.from_env()

    assert settings == AnalyzerSettings()
    assert settings.github_token is None
    assert settings.llm_base_url == DEFAULT_LLM_BASE_URL
    assert settings.llm_model == DEFAULT_LLM_MODEL
    assert settings.max_iterations == 5  # noqa: PLR2004
    assert settings.allowed_hosts == frozenset()


def test_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "ghp_test")
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test")
    monkeypatch.setenv("LLM_MODEL", "llama-3.1-8b-instant")
    monkeypatch.setenv("ALLOWED_HOSTS", "GitHub.com, www.github.com,")

    settings = AnalyzerSettings.from_env()

    assert settings.github_token == "ghp_test"
    assert settings.llm_api_key == "gsk_test"
    assert settings.llm_model == "llama-3.1-8b-instant"
    assert settings.allowed_hosts == frozenset({"github.com", "www.github.com"})


def test_github_token_takes_precedence(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_primary")
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "ghp_secondary")

    assert AnalyzerSettings.from_env().github_token == "ghp_primary"
