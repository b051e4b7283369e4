"""Services package."""

from .conversation_store import ConversationStore, DeleteMessageOutcome
from .drafts import Draft, DraftKey, DraftRegistry
from .external_comments import (
    ExternalCommentAdapter,
    StaticExternalCommentAdapter,
    normalize_github_review_comment,
)
from .line_index import ContentLineIndex, DiffLineIndex
from .overlay import resolve_overlay, summarize_file
from .review_comments import ReviewCommentRegistry

__all__ = [
    "ConversationStore",
    "DeleteMessageOutcome",
    "Draft",
    "DraftKey",
    "DraftRegistry",
    "ExternalCommentAdapter",
    "StaticExternalCommentAdapter",
    "normalize_github_review_comment",
    "ContentLineIndex",
    "DiffLineIndex",
    "resolve_overlay",
    "summarize_file",
    "ReviewCommentRegistry",
]
