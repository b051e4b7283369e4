"""Review conversation REST API routes - V1.

Conversations are anchored to a line of a file on one side of a diff and are
scoped to an attempt. Every response uses the ``ApiResponse`` envelope; domain
failures carry a tagged ``error_data`` payload and a matching status code.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import JSONResponse

from ...config import settings
from ...db.database_models import ConversationDO
from ...errors import ERROR_STATUS_CODES, ReviewConversationError
from ...models.conversation import (
    ApiResponse,
    ConversationResponse,
    CreateConversationRequest,
    CreateMessageRequest,
    DeleteMessageResponse,
    MessageResponse,
    ResolveConversationRequest,
)
from ...services.conversation_store import ConversationStore
from ...utils.logger import get_app_logger

router = APIRouter(prefix="/api/v1/attempts/{attempt_id}/conversations", tags=["Review Conversations"])

# Conversation store (set by main.py)
store: ConversationStore = None
# Identity used when a request carries no X-User-Id header (set by main.py)
default_user: Optional[str] = None

logger = get_app_logger("api")


def get_store() -> ConversationStore:
    """Dependency to get the conversation store."""
    if store is None:
        raise HTTPException(status_code=500, detail="Conversation store not initialized")
    return store


def get_current_user(x_user_id: Optional[str] = Header(None)) -> str:
    """Dependency resolving the caller identity."""
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return default_user or settings.default_user


def to_response(conv: ConversationDO) -> ConversationResponse:
    """Convert ConversationDO to ConversationResponse."""
    return ConversationResponse(
        id=conv.id,
        attempt_id=conv.attempt_id,
        file_path=conv.file_path,
        line_number=conv.line_number,
        side=conv.side,
        code_line=conv.code_line,
        is_resolved=conv.is_resolved,
        resolved_by=conv.resolved_by,
        resolved_at=conv.resolved_at,
        resolution_summary=conv.resolution_summary,
        created_at=conv.created_at,
        updated_at=conv.updated_at,
        messages=[
            MessageResponse(
                id=m.id,
                conversation_id=m.conversation_id,
                author=m.author,
                content=m.content,
                created_at=m.created_at
            )
            for m in conv.messages
        ]
    )


def _error_response(error: ReviewConversationError) -> JSONResponse:
    """Render a domain error as a tagged envelope."""
    logger.debug(f"Conversation request failed: {error.kind}: {error.message}")
    body = ApiResponse.error(error.kind, error.message)
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(error.kind, 400),
        content=body.model_dump(mode="json")
    )


@router.get("", response_model=ApiResponse[List[ConversationResponse]])
async def list_conversations(
    attempt_id: str,
    file_path: Optional[str] = Query(None, description="Only conversations anchored to this file"),
    repo: ConversationStore = Depends(get_store)
):
    """List all conversations for an attempt, optionally for one file."""
    if file_path:
        conversations = repo.list_by_file(attempt_id, file_path)
    else:
        conversations = repo.list_by_attempt(attempt_id)

    return ApiResponse.ok([to_response(c) for c in conversations])


@router.get("/unresolved", response_model=ApiResponse[List[ConversationResponse]])
async def list_unresolved_conversations(
    attempt_id: str,
    repo: ConversationStore = Depends(get_store)
):
    """List only unresolved conversations for an attempt."""
    conversations = repo.list_unresolved(attempt_id)
    return ApiResponse.ok([to_response(c) for c in conversations])


@router.get("/{conversation_id}", response_model=ApiResponse[ConversationResponse])
async def get_conversation(
    attempt_id: str,
    conversation_id: str,
    repo: ConversationStore = Depends(get_store)
):
    """Get a single conversation with its messages."""
    try:
        conversation = repo.get(attempt_id, conversation_id)
    except ReviewConversationError as e:
        return _error_response(e)

    return ApiResponse.ok(to_response(conversation))


@router.post("", response_model=ApiResponse[ConversationResponse], status_code=201)
async def create_conversation(
    attempt_id: str,
    request: CreateConversationRequest,
    repo: ConversationStore = Depends(get_store),
    user: str = Depends(get_current_user)
):
    """Create a conversation at a line with its first message."""
    try:
        conversation = repo.create(
            attempt_id=attempt_id,
            file_path=request.file_path,
            line_number=request.line_number,
            side=request.side,
            initial_message=request.initial_message,
            author=user,
            code_line=request.code_line
        )
    except ReviewConversationError as e:
        return _error_response(e)

    return ApiResponse.ok(to_response(conversation))


@router.post("/{conversation_id}/messages", response_model=ApiResponse[ConversationResponse], status_code=201)
async def add_message(
    attempt_id: str,
    conversation_id: str,
    request: CreateMessageRequest,
    repo: ConversationStore = Depends(get_store),
    user: str = Depends(get_current_user)
):
    """Append a message to a conversation."""
    try:
        conversation = repo.add_message(attempt_id, conversation_id, request.content, author=user)
    except ReviewConversationError as e:
        return _error_response(e)

    return ApiResponse.ok(to_response(conversation))


@router.delete("/{conversation_id}/messages/{message_id}", response_model=ApiResponse[DeleteMessageResponse])
async def delete_message(
    attempt_id: str,
    conversation_id: str,
    message_id: str,
    repo: ConversationStore = Depends(get_store)
):
    """Delete a message; the conversation goes away with its last message."""
    try:
        outcome = repo.delete_message(attempt_id, conversation_id, message_id)
    except ReviewConversationError as e:
        return _error_response(e)

    return ApiResponse.ok(DeleteMessageResponse(
        conversation_deleted=outcome.conversation_deleted,
        conversation=to_response(outcome.conversation) if outcome.conversation else None
    ))


@router.post("/{conversation_id}/resolve", response_model=ApiResponse[ConversationResponse])
async def resolve_conversation(
    attempt_id: str,
    conversation_id: str,
    request: ResolveConversationRequest,
    repo: ConversationStore = Depends(get_store),
    user: str = Depends(get_current_user)
):
    """Resolve a conversation with a summary."""
    try:
        conversation = repo.resolve(attempt_id, conversation_id, request.summary, resolved_by=user)
    except ReviewConversationError as e:
        return _error_response(e)

    return ApiResponse.ok(to_response(conversation))


@router.post("/{conversation_id}/unresolve", response_model=ApiResponse[ConversationResponse])
async def unresolve_conversation(
    attempt_id: str,
    conversation_id: str,
    repo: ConversationStore = Depends(get_store)
):
    """Re-open a conversation."""
    try:
        conversation = repo.unresolve(attempt_id, conversation_id)
    except ReviewConversationError as e:
        return _error_response(e)

    return ApiResponse.ok(to_response(conversation))


@router.delete("/{conversation_id}", response_model=ApiResponse)
async def delete_conversation(
    attempt_id: str,
    conversation_id: str,
    repo: ConversationStore = Depends(get_store)
):
    """Delete a conversation and its messages."""
    try:
        repo.delete(attempt_id, conversation_id)
    except ReviewConversationError as e:
        return _error_response(e)

    return ApiResponse.ok()
