"""Diff line lookup used to snapshot the code under a comment."""

import re
from typing import Dict, List, Optional, Protocol

from ..models.conversation import DiffSide


def split_lines(content: Optional[str]) -> List[str]:
    """Split on \\n only, keeping endings; form feeds and other separators stay inside a line."""
    if not content:
        return []
    return [line for line in re.split(r"(?<=\n)", content) if line]


def strip_line_ending(value: str) -> str:
    """Drop a trailing \\r\\n, \\n or \\r."""
    if value.endswith("\r\n"):
        return value[:-2]
    if value.endswith("\n") or value.endswith("\r"):
        return value[:-1]
    return value


class DiffLineIndex(Protocol):
    """Anything that can return the literal text of a diff line."""

    def read_line(self, file_path: str, side: DiffSide, line_number: int) -> Optional[str]:
        ...


class ContentLineIndex:
    """Line index over the old and new contents of changed files.

    Lines are 1-based per side. Unknown files, out-of-range lines, and a
    side missing from the file (e.g. "old" for an added file) read as None.
    """

    def __init__(self):
        self._lines: Dict[str, Dict[DiffSide, List[str]]] = {}

    def add_file(self, file_path: str, old_content: Optional[str], new_content: Optional[str]) -> None:
        """Register (or replace) the two versions of a file."""
        self._lines[file_path] = {
            DiffSide.OLD: split_lines(old_content),
            DiffSide.NEW: split_lines(new_content),
        }

    def remove_file(self, file_path: str) -> None:
        self._lines.pop(file_path, None)

    def read_line(self, file_path: str, side: DiffSide, line_number: int) -> Optional[str]:
        sides = self._lines.get(file_path)
        if sides is None or line_number < 1:
            return None
        lines = sides[DiffSide(side)]
        if line_number > len(lines):
            return None
        return strip_line_ending(lines[line_number - 1])
