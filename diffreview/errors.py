"""Domain errors for review conversations.

Each error carries a stable ``kind`` string that travels over the wire as the
``type`` of the error payload. Infrastructure failures (database, transport)
are not part of this hierarchy.
"""


class ReviewConversationError(Exception):
    """Base class for review conversation domain errors."""

    kind = "review_conversation_error"
    default_message = "Review conversation error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serialize as a tagged error payload."""
        return {"type": self.kind, "message": self.message}


class ValidationError(ReviewConversationError):
    """Caller-supplied content failed a precondition."""

    kind = "validation_error"
    default_message = "Validation failed"


class NotFoundError(ReviewConversationError):
    """Referenced conversation or message does not exist in this attempt."""

    kind = "not_found"
    default_message = "Conversation not found"


class AlreadyResolvedError(ReviewConversationError):
    """A resolve was attempted on a conversation that is already resolved."""

    kind = "already_resolved"
    default_message = "Conversation already resolved"


ERROR_STATUS_CODES = {
    ValidationError.kind: 400,
    NotFoundError.kind: 404,
    AlreadyResolvedError.kind: 409,
}
