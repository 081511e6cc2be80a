from repo_context_mcp.clients.errors.github import ClientError


class ChatRequestError(ClientError):
    """A chat completion call failed in transport, authentication or parsing."""

    def __init__(self, message: str | None = None, model: str | None = None):
        super().__init__(message="The chat completion request failed.", extra_info={"model": model, "message": message})
