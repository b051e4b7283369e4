"""Review conversation API models."""

from datetime import datetime
from enum import Enum
from typing import Generic, List, Literal, Optional, TypeVar
from pydantic import BaseModel, Field


class DiffSide(str, Enum):
    """Side of the diff where a comment is anchored."""

    OLD = "old"
    NEW = "new"


class MessageResponse(BaseModel):
    """Response model for a single conversation message."""

    id: str = Field(description="Message ID")
    conversation_id: str = Field(description="Owning conversation ID")
    author: str = Field(description="Identity of the writer")
    content: str = Field(description="Message text")
    created_at: datetime = Field(description="Creation timestamp")


class ConversationResponse(BaseModel):
    """A review conversation with all of its messages."""

    id: str = Field(description="Conversation ID")
    attempt_id: str = Field(description="Attempt this conversation belongs to")
    file_path: str = Field(description="Relative path of the anchored file")
    line_number: int = Field(description="1-based line number on the anchored side")
    side: DiffSide = Field(description="Diff side of the anchor")
    code_line: Optional[str] = Field(None, description="Snapshot of the anchored source line")
    is_resolved: bool = Field(default=False, description="Whether the conversation is resolved")
    resolved_by: Optional[str] = Field(None, description="Identity of the resolver")
    resolved_at: Optional[datetime] = Field(None, description="Resolution timestamp")
    resolution_summary: Optional[str] = Field(None, description="Resolution summary")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last modification timestamp")
    messages: List[MessageResponse] = Field(default_factory=list, description="Messages in insertion order")


class CreateConversationRequest(BaseModel):
    """Request model for creating a conversation."""

    file_path: str = Field(description="Relative path of the anchored file", min_length=1)
    line_number: int = Field(description="1-based line number", ge=1)
    side: DiffSide = Field(description="Diff side of the anchor")
    code_line: Optional[str] = Field(None, description="Snapshot of the anchored source line")
    initial_message: str = Field(description="Text of the first message")


class CreateMessageRequest(BaseModel):
    """Request model for adding a message."""

    content: str = Field(description="Message text")


class ResolveConversationRequest(BaseModel):
    """Request model for resolving a conversation."""

    summary: str = Field(description="Resolution summary")


class DeleteMessageResponse(BaseModel):
    """Outcome of deleting a message.

    When the last message goes, the conversation goes with it and
    ``conversation`` is None.
    """

    conversation_deleted: bool = Field(description="Whether the conversation was removed with its last message")
    conversation: Optional[ConversationResponse] = Field(None, description="Updated conversation when it survives")


ErrorType = Literal["validation_error", "not_found", "already_resolved"]


class ConversationErrorPayload(BaseModel):
    """Tagged domain error."""

    type: ErrorType = Field(description="Error kind")
    message: str = Field(description="Human readable description")


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every conversation endpoint."""

    success: bool = Field(description="Whether the operation succeeded")
    data: Optional[T] = Field(None, description="Payload on success")
    error_data: Optional[ConversationErrorPayload] = Field(None, description="Tagged error on failure")
    message: Optional[str] = Field(None, description="Error message on failure")

    @classmethod
    def ok(cls, data=None) -> "ApiResponse":
        return cls(success=True, data=data)

    @classmethod
    def error(cls, error_type: str, message: str) -> "ApiResponse":
        return cls(
            success=False,
            error_data=ConversationErrorPayload(type=error_type, message=message),
            message=message
        )
