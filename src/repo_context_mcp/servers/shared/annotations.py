from typing import Annotated

from pydantic import Field

REPOSITORY_DESCRIPTION = "The repository to analyze, either `owner/repo` or a URL such as `https://github.com/owner/repo`."
REPOSITORY = Annotated[str, Field(description=REPOSITORY_DESCRIPTION)]

PROMPT_DESCRIPTION = "The question or topic the analysis should focus on."
PROMPT = Annotated[str, Field(description=PROMPT_DESCRIPTION)]

REF_DESCRIPTION = "The branch, tag or commit to read from. If not provided, the default branch will be used."
REF = Annotated[str | None, Field(description=REF_DESCRIPTION)]
