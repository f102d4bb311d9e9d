"""Split ``git diff --staged`` output into per-file units."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

UNKNOWN_PATH = "(unknown)"

_SEGMENT_BOUNDARY = re.compile(r"^(?=diff --git )", re.MULTILINE)
_GIT_HEADER = re.compile(r"^diff --git a/(.+) b/(.+)$")


class FileStatus(str, Enum):
    """Change type of one staged file."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class FileDiff:
    """One file's slice of the staged diff.

    ``file_path`` is the destination path; ``old_path`` is only set for renames.
    ``raw_diff`` keeps the full segment including its ``diff --git`` header.
    """

    file_path: str
    old_path: str | None
    raw_diff: str
    status: FileStatus = FileStatus.MODIFIED
    is_binary: bool = False


def parse_unified_diff(diff: str) -> list[FileDiff]:
    """Parse a unified diff into one ``FileDiff`` per ``diff --git`` segment."""

    if not diff.strip():
        return []
    segments = [segment for segment in _SEGMENT_BOUNDARY.split(diff) if segment.strip()]
    return [_parse_segment(segment) for segment in segments]


def _parse_segment(segment: str) -> FileDiff:  # noqa: C901
    lines = segment.split("\n")
    file_path: str | None = None
    old_path: str | None = None
    status = FileStatus.MODIFIED
    is_binary = False

    for line in lines:
        if line.startswith("+++ b/"):
            file_path = line[len("+++ b/") :]
        elif line.startswith("--- a/"):
            old_path = line[len("--- a/") :]
        elif line.startswith("+++ /dev/null"):
            status = FileStatus.DELETED
        elif line.startswith("--- /dev/null"):
            status = FileStatus.ADDED
        elif line.startswith("new file mode"):
            status = FileStatus.ADDED
        elif line.startswith("deleted file mode"):
            status = FileStatus.DELETED
        elif line.startswith("rename from "):
            old_path = line[len("rename from ") :]
            status = FileStatus.RENAMED
        elif line.startswith("rename to "):
            file_path = line[len("rename to ") :]
            status = FileStatus.RENAMED
        elif line.startswith(("Binary files", "GIT binary patch")):
            is_binary = True

    # Deleted files have no "+++ b/" line.
    if not file_path and old_path:
        file_path = old_path

    if not file_path:
        header = _GIT_HEADER.match(lines[0]) if lines else None
        if header is not None:
            file_path = _strip_quotes(header.group(2))
            if not old_path:
                old_path = _strip_quotes(header.group(1))

    return FileDiff(
        file_path=file_path or UNKNOWN_PATH,
        old_path=old_path if status is FileStatus.RENAMED else None,
        raw_diff=segment,
        status=status,
        is_binary=is_binary,
    )


def _strip_quotes(path: str) -> str:
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):  # noqa: PLR2004
        return path[1:-1]
    return path
