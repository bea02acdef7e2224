"""Unified diff data models."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class DiffLineKind(str, Enum):
    """Role of a line within a unified diff."""

    FILE_HEADER = "file_header"
    HUNK_HEADER = "hunk_header"
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"
    MARKER = "marker"  # "\ No newline at end of file"


class DiffLine(BaseModel):
    """One line of a unified diff with its reconstructed post-image line number."""

    content: str
    kind: DiffLineKind
    line_number: Optional[int] = None
    file_path: str = ""


class Hunk(BaseModel):
    """Hunk header values: old_start[,old_count] new_start[,new_count]."""

    old_start: int
    old_count: int = 1
    new_start: int
    new_count: int = 1


class FileSection(BaseModel):
    """Contiguous run of diff lines belonging to one file."""

    old_path: str = ""
    new_path: str = ""
    included: bool = True
    lines: List[DiffLine] = []
    hunks: List[Hunk] = []

    @property
    def lines_added(self) -> int:
        return sum(1 for line in self.lines if line.kind == DiffLineKind.ADDED)

    @property
    def lines_removed(self) -> int:
        return sum(1 for line in self.lines if line.kind == DiffLineKind.REMOVED)

    @property
    def change_type(self) -> str:
        if self.lines_added > 0 and self.lines_removed == 0:
            return "added"
        if self.lines_added == 0 and self.lines_removed > 0:
            return "removed"
        return "modified"
