from collections.abc import Sequence
from typing import Self

from githubkit.versions.v2022_11_28.models import ContentDirectoryItems as GitHubKitContentDirectoryItems
from githubkit.versions.v2022_11_28.models import ContentFile as GitHubKitContentFile
from pydantic import BaseModel, ConfigDict, Field

from repo_context_mcp.utilities.text import decode_content


class FolderEntry(BaseModel):
    """An entry in a repository folder."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="The path of the entry from the root of the repository.")
    type: str = Field(description="The type of the entry: file, dir, symlink or submodule.")

    @classmethod
    def from_content_directory_item(cls, item: GitHubKitContentDirectoryItems) -> Self:
        return cls(path=item.path, type=item.type)

    def to_line(self) -> str:
        return f"{self.path} ({self.type})"


class FolderListing(BaseModel):
    """The entries of a repository folder, in the order GitHub returned them."""

    path: str = Field(description="The path of the folder.")
    entries: list[FolderEntry] = Field(default_factory=list, description="The entries of the folder.")

    @classmethod
    def from_content_directory(cls, path: str, items: Sequence[GitHubKitContentDirectoryItems]) -> Self:
        return cls(path=path, entries=[FolderEntry.from_content_directory_item(item) for item in items])

    def to_text(self) -> str:
        """Render the listing as one `path (type)` line per entry."""
        return "".join(f"{entry.to_line()}\n" for entry in self.entries)


class RepositoryFile(BaseModel):
    """A file with its path and decoded content."""

    path: str = Field(description="The path of the file.")
    content: str = Field(description="The decoded content of the file.")

    @classmethod
    def from_content_file(cls, content_file: GitHubKitContentFile) -> Self:
        return cls(path=content_file.path, content=decode_content(content_file.content))
