"""Read-only adapter for comments imported from an outside review system."""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol

from ..models.conversation import DiffSide
from ..models.overlay import ExternalComment
from ..utils.logger import get_app_logger


class ExternalCommentAdapter(Protocol):
    """Source of already-normalized external comments for a file."""

    def list_external_comments(self, file_path: str) -> List[ExternalComment]:
        ...


def normalize_github_review_comment(raw: Dict[str, Any]) -> Optional[ExternalComment]:
    """
    Normalize a GitHub pull request review comment.

    GitHub anchors comments with ``side`` LEFT (old) or RIGHT (new) and a
    ``line``; outdated comments only carry ``original_line``. File-level
    comments (no line at all) cannot be placed on a line and yield None.

    Args:
        raw: Review comment object as returned by the GitHub REST API

    Returns:
        ExternalComment instance or None
    """
    line = raw.get("line") or raw.get("original_line")
    path = raw.get("path")
    if not line or not path:
        return None

    side = DiffSide.OLD if (raw.get("side") or "RIGHT").upper() == "LEFT" else DiffSide.NEW
    user = raw.get("user") or {}
    created_at = raw.get("created_at")

    return ExternalComment(
        id=str(raw["id"]) if raw.get("id") is not None else None,
        file_path=path,
        line_number=int(line),
        side=side,
        body=raw.get("body") or "",
        author=user.get("login") or "unknown",
        url=raw.get("html_url"),
        created_at=datetime.fromisoformat(created_at.replace("Z", "+00:00")) if created_at else None,
    )


class StaticExternalCommentAdapter:
    """External comments held in memory, grouped by file path."""

    def __init__(self, comments: Iterable[ExternalComment] = ()):
        self._by_file: Dict[str, List[ExternalComment]] = {}
        self.replace(comments)

    @classmethod
    def from_github(cls, raw_comments: Iterable[Dict[str, Any]]) -> "StaticExternalCommentAdapter":
        """Build an adapter from raw GitHub review comments, skipping unplaceable ones."""
        comments = []
        for raw in raw_comments:
            comment = normalize_github_review_comment(raw)
            if comment is None:
                get_app_logger("external").debug(f"Skipping external comment without a line: {raw.get('id')}")
                continue
            comments.append(comment)
        return cls(comments)

    def replace(self, comments: Iterable[ExternalComment]) -> None:
        """Swap in a fresh snapshot of external comments."""
        self._by_file = {}
        for comment in comments:
            self._by_file.setdefault(comment.file_path, []).append(comment)

    def list_external_comments(self, file_path: str) -> List[ExternalComment]:
        return list(self._by_file.get(file_path, []))
