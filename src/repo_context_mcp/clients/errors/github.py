ExtraInfoType = dict[str, str | None]


class ClientError(Exception):
    """An error from the repository content client."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class MissingCredentialError(ClientError):
    """Raised before any request when no GitHub token has been configured."""

    def __init__(self):
        super().__init__(
            message=(
                "GITHUB_TOKEN environment variable is not set. "
                "Please set it to a valid GitHub personal access token with repo scope"
            )
        )


class RequestError(ClientError):
    """A request error from the repository content client."""

    def __init__(self, action: str, message: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(message="A request error occured.", extra_info={"action": action, "message": message, **extra_info})


class ResourceNotFoundError(RequestError):
    """A not found error from the repository content client."""

    def __init__(self, action: str, resource: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(
            action=action,
            message="The resource could not be found.",
            extra_info={"resource": resource, **extra_info},
        )


class ResourceTypeMismatchError(RequestError):
    """A type mismatch error from the repository content client."""

    def __init__(self, action: str, resource: str, expected_type: str, actual_type: str):
        super().__init__(action, f"{resource}: Expected {expected_type}, got {actual_type}")


class ContentDecodeError(RequestError):
    """The content of a file could not be decoded to text."""

    def __init__(self, action: str, resource: str, reason: str):
        super().__init__(action, f"{resource}: {reason}")
