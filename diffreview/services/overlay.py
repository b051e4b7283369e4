"""Overlay resolver: merge the three comment sources of a file into line slots.

Priority, highest first: conversations, local review comments, external
comments. Sources are visited in that order and an entry only lands in a slot
nobody has claimed yet, so a lower tier can never shadow a higher one.
Within a tier the first entry at an anchor wins.
"""

from typing import Iterable, Optional

from ..models.conversation import ConversationResponse, DiffSide
from ..models.overlay import (
    ConversationEntry,
    ExternalComment,
    ExternalCommentEntry,
    FileOverlay,
    OverlaySummary,
    ReviewComment,
    ReviewCommentEntry,
)


def _claim(overlay: FileOverlay, side: DiffSide, line_number: int, entry) -> bool:
    slots = overlay.side_map(side)
    if line_number in slots:
        return False
    slots[line_number] = entry
    return True


def resolve_overlay(
    file_path: str,
    conversations: Iterable[ConversationResponse] = (),
    review_comments: Iterable[ReviewComment] = (),
    external_comments: Iterable[ExternalComment] = (),
) -> FileOverlay:
    """
    Build the per-side slot map for one file.

    Entries anchored to another file are ignored, so callers may pass
    attempt-wide collections.

    Args:
        file_path: File being rendered
        conversations: Persisted conversations (already attempt-scoped)
        review_comments: Client-local review comments
        external_comments: Comments from the external review system

    Returns:
        FileOverlay with at most one entry per (side, line_number)
    """
    overlay = FileOverlay(file_path=file_path)

    for conversation in conversations:
        if conversation.file_path == file_path:
            _claim(overlay, conversation.side, conversation.line_number,
                   ConversationEntry(data=conversation))

    for comment in review_comments:
        if comment.file_path == file_path:
            _claim(overlay, comment.side, comment.line_number, ReviewCommentEntry(data=comment))

    for comment in external_comments:
        if comment.file_path == file_path:
            _claim(overlay, comment.side, comment.line_number, ExternalCommentEntry(data=comment))

    return overlay


def summarize_file(
    file_path: str,
    conversations: Iterable[ConversationResponse] = (),
    review_comments: Iterable[ReviewComment] = (),
    external_comments: Iterable[ExternalComment] = (),
) -> OverlaySummary:
    """Count the comments of each kind attached to a file.

    ``total`` counts review comments, external comments and unresolved
    conversations; resolved threads do not ask for attention.
    """
    file_conversations = [c for c in conversations if c.file_path == file_path]
    unresolved = sum(1 for c in file_conversations if not c.is_resolved)
    review_count = sum(1 for c in review_comments if c.file_path == file_path)
    external_count = sum(1 for c in external_comments if c.file_path == file_path)

    return OverlaySummary(
        conversations=len(file_conversations),
        unresolved_conversations=unresolved,
        review_comments=review_count,
        external_comments=external_count,
        total=review_count + external_count + unresolved,
    )


def conversation_at(overlay: FileOverlay, side: DiffSide, line_number: int) -> Optional[ConversationResponse]:
    """Return the conversation rendered at a slot, if the slot holds one."""
    entry = overlay.slot(side, line_number)
    if entry is not None and entry.kind == "conversation":
        return entry.data
    return None
