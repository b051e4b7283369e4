"""Pydantic models for API request/response and overlay rendering."""

from .conversation import (
    DiffSide,
    MessageResponse,
    ConversationResponse,
    CreateConversationRequest,
    CreateMessageRequest,
    ResolveConversationRequest,
    DeleteMessageResponse,
    ConversationErrorPayload,
    ApiResponse,
)
from .overlay import (
    ReviewComment,
    ExternalComment,
    ConversationEntry,
    ReviewCommentEntry,
    ExternalCommentEntry,
    OverlayEntry,
    FileOverlay,
    OverlaySummary,
)

__all__ = [
    "DiffSide",
    "MessageResponse",
    "ConversationResponse",
    "CreateConversationRequest",
    "CreateMessageRequest",
    "ResolveConversationRequest",
    "DeleteMessageResponse",
    "ConversationErrorPayload",
    "ApiResponse",
    "ReviewComment",
    "ExternalComment",
    "ConversationEntry",
    "ReviewCommentEntry",
    "ExternalCommentEntry",
    "OverlayEntry",
    "FileOverlay",
    "OverlaySummary",
]
