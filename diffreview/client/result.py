"""Typed operation results and the transport failure type."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from ..models.conversation import ConversationErrorPayload

T = TypeVar("T")


class TransportError(Exception):
    """Network failure, timeout, or a response that is not a valid envelope.

    Never used for domain failures; those come back as a failed Result.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class Result(Generic[T]):
    """Success payload or tagged domain error of one conversation operation."""

    success: bool
    data: Optional[T] = None
    error: Optional[ConversationErrorPayload] = None

    @classmethod
    def ok(cls, data: T = None) -> "Result[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error_type: str, message: str) -> "Result[T]":
        return cls(success=False, error=ConversationErrorPayload(type=error_type, message=message))

    @property
    def error_type(self) -> Optional[str]:
        return self.error.type if self.error else None

    @property
    def is_validation_error(self) -> bool:
        return self.error_type == "validation_error"

    @property
    def is_not_found(self) -> bool:
        return self.error_type == "not_found"

    @property
    def is_already_resolved(self) -> bool:
        return self.error_type == "already_resolved"
