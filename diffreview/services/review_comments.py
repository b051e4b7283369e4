"""Client-local review comments (the middle tier of the overlay)."""

import uuid
from typing import Dict, List, Optional

from ..models.overlay import ReviewComment
from .drafts import Draft


class ReviewCommentRegistry:
    """Ephemeral review notes kept by one client; they have no thread or resolution."""

    def __init__(self):
        self._comments: Dict[str, ReviewComment] = {}

    def add_from_draft(self, draft: Draft, author: Optional[str] = None) -> Optional[ReviewComment]:
        """
        Save a draft as a review comment.

        Returns:
            The new comment, or None when the draft is empty
        """
        if draft.is_empty:
            return None
        comment = ReviewComment(
            id=str(uuid.uuid4()),
            file_path=draft.key.file_path,
            line_number=draft.key.line_number,
            side=draft.key.side,
            text=draft.text,
            code_line=draft.code_line,
            author=author,
        )
        self._comments[comment.id] = comment
        return comment

    def update(self, comment_id: str, text: str) -> Optional[ReviewComment]:
        comment = self._comments.get(comment_id)
        if comment is None:
            return None
        updated = comment.model_copy(update={"text": text})
        self._comments[comment_id] = updated
        return updated

    def remove(self, comment_id: str) -> bool:
        return self._comments.pop(comment_id, None) is not None

    def comments_for_file(self, file_path: str) -> List[ReviewComment]:
        return [c for c in self._comments.values() if c.file_path == file_path]

    def all(self) -> List[ReviewComment]:
        return list(self._comments.values())

    def clear(self) -> None:
        self._comments.clear()

    def __len__(self) -> int:
        return len(self._comments)
