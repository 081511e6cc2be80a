ExtraInfoType = dict[str, str | None]


class AnalysisError(Exception):
    """An error from the repository analyzer."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class InvalidRepositoryError(AnalysisError):
    def __init__(self, identifier: str):
        super().__init__(
            message="Invalid repository format. Expected 'owner/repo' or a valid GitHub URL.", extra_info={"identifier": identifier}
        )


class AnalysisFailedError(AnalysisError):
    """A collaborator failed in a way that ends the whole analysis."""

    def __init__(self, action: str, cause: BaseException):
        super().__init__(message=f"error {action}: {cause}")
        self.action: str = action
        self.cause: BaseException = cause


class ToolCallError(AnalysisError):
    """A single tool call could not be executed. Only that call is affected."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(message=message, extra_info={"tool": tool_name})
        self.tool_name: str = tool_name


class ToolArgumentsError(ToolCallError):
    def __init__(self, tool_name: str, reason: str):
        super().__init__(tool_name=tool_name, message=f"error decoding tool call arguments: {reason}")


class UnknownToolError(ToolCallError):
    def __init__(self, tool_name: str):
        super().__init__(tool_name=tool_name, message=f"Unknown tool: {tool_name}")


class SummarizationError(AnalysisError):
    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message=message, extra_info={"cause": str(cause) if cause else None})
