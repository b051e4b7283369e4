"""Review conversation store.

Durable CRUD over conversations and their messages on top of the DuckDB
repositories. Every mutation runs in a single transaction under the
connection's write lock, so a conversation is never observed with partially
set resolution fields, without messages, or with a message whose owner is gone.

Concurrent ``resolve`` and ``add_message`` calls against one conversation are
serialized by that lock. Neither touches the other's fields, so the final
record is the same in either order; a message added to a resolved
conversation leaves it resolved.
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional

from ..db.connection import DatabaseConnection
from ..db.database_models import ConversationDO, MessageDO
from ..db.repositories import ConversationRepository, MessageRepository
from ..errors import AlreadyResolvedError, NotFoundError, ValidationError
from ..models.conversation import DiffSide
from ..utils.logger import get_app_logger
from ..utils.timeutil import utc_now


@dataclass
class DeleteMessageOutcome:
    """Result of deleting a message.

    ``conversation`` is the updated conversation, or None when the deleted
    message was the last one and the conversation went with it.
    """

    conversation: Optional[ConversationDO]
    conversation_deleted: bool = False


class ConversationStore:
    """Conversation and message lifecycle for review attempts."""

    def __init__(self, db: DatabaseConnection, max_message_length: int = 10000):
        """
        Initialize the store.

        Args:
            db: Open database connection
            max_message_length: Upper bound on message and summary length
        """
        self.db = db
        self.max_message_length = max_message_length
        self.conversations = ConversationRepository(db.conn)
        self.messages = MessageRepository(db.conn)
        self.logger = get_app_logger("store")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_by_attempt(self, attempt_id: str) -> List[ConversationDO]:
        """All conversations of an attempt, any resolution state, in creation order."""
        with self.db.lock:
            return self._with_messages(self.conversations.list_by_attempt(attempt_id))

    def list_unresolved(self, attempt_id: str) -> List[ConversationDO]:
        """Conversations of an attempt that are not resolved, in creation order."""
        with self.db.lock:
            return self._with_messages(
                self.conversations.list_by_attempt(attempt_id, unresolved_only=True)
            )

    def list_by_file(self, attempt_id: str, file_path: str) -> List[ConversationDO]:
        """Conversations anchored to one file of an attempt, ordered by line."""
        with self.db.lock:
            return self._with_messages(self.conversations.list_by_file(attempt_id, file_path))

    def get(self, attempt_id: str, conversation_id: str) -> ConversationDO:
        """
        Get one conversation with its messages.

        Raises:
            NotFoundError: If the conversation does not exist in this attempt
        """
        with self.db.lock:
            return self._current(attempt_id, conversation_id)

    def find_active_at(
        self,
        attempt_id: str,
        file_path: str,
        side: str,
        line_number: int
    ) -> Optional[ConversationDO]:
        """Return the conversation occupying an anchor, if any."""
        side = self._require_side(side)
        with self.db.lock:
            conversation = self.conversations.find_at(attempt_id, file_path, side, line_number)
            return self._load(conversation) if conversation else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(
        self,
        attempt_id: str,
        file_path: str,
        line_number: int,
        side: str,
        initial_message: str,
        author: str,
        code_line: Optional[str] = None
    ) -> ConversationDO:
        """
        Create a conversation at an anchor together with its first message.

        Raises:
            ValidationError: On blank message, bad anchor, or an occupied anchor
        """
        if not file_path or not file_path.strip():
            raise ValidationError("File path cannot be empty")
        if isinstance(line_number, bool) or not isinstance(line_number, int) or line_number < 1:
            raise ValidationError("Line number must be a positive integer")
        side = self._require_side(side)
        self._require_text(initial_message, "Initial message")

        now = utc_now()
        conversation = ConversationDO(
            id=str(uuid.uuid4()),
            attempt_id=attempt_id,
            file_path=file_path,
            line_number=line_number,
            side=side,
            code_line=code_line,
            created_at=now,
            updated_at=now,
        )
        message = MessageDO(
            id=str(uuid.uuid4()),
            conversation_id=conversation.id,
            author=author,
            content=initial_message,
            created_at=now,
        )

        with self.db.transaction():
            existing = self.conversations.find_at(attempt_id, file_path, side, line_number)
            if existing:
                raise ValidationError(
                    f"A conversation already exists at {file_path}:{line_number} ({side})"
                )
            self.conversations.create(conversation)
            self.messages.add(message)
            created = self._current(attempt_id, conversation.id)

        self.logger.info(
            f"Created conversation {conversation.id} at {file_path}:{line_number} ({side}) "
            f"for attempt {attempt_id}"
        )
        return created

    def add_message(self, attempt_id: str, conversation_id: str, content: str, author: str) -> ConversationDO:
        """
        Append a message to the end of a conversation.

        Raises:
            ValidationError: If content is blank or too long
            NotFoundError: If the conversation does not exist in this attempt
        """
        self._require_text(content, "Message content")

        with self.db.transaction():
            self._require_conversation(attempt_id, conversation_id)

            # created_at never goes backwards within a conversation
            now = utc_now()
            latest = self.messages.get_latest_created_at(conversation_id)
            created_at = max(now, latest) if latest else now

            self.messages.add(MessageDO(
                id=str(uuid.uuid4()),
                conversation_id=conversation_id,
                author=author,
                content=content,
                created_at=created_at,
            ))
            self.conversations.touch(conversation_id, now)
            updated = self._current(attempt_id, conversation_id)

        self.logger.info(f"Added message to conversation {conversation_id}")
        return updated

    def delete_message(self, attempt_id: str, conversation_id: str, message_id: str) -> DeleteMessageOutcome:
        """
        Delete a message; deleting the last one deletes the conversation too.

        Raises:
            NotFoundError: If the conversation or the message does not exist
        """
        with self.db.transaction():
            self._require_conversation(attempt_id, conversation_id)

            message = self.messages.get(message_id)
            if not message or message.conversation_id != conversation_id:
                raise NotFoundError("Message not found")

            self.messages.delete(message_id)

            if self.messages.count_by_conversation(conversation_id) == 0:
                self.conversations.delete(conversation_id)
                remaining = None
            else:
                self.conversations.touch(conversation_id, utc_now())
                remaining = self._current(attempt_id, conversation_id)

        if remaining is None:
            self.logger.info(f"Deleted last message of conversation {conversation_id}; conversation removed")
            return DeleteMessageOutcome(conversation=None, conversation_deleted=True)

        self.logger.info(f"Deleted message {message_id} from conversation {conversation_id}")
        return DeleteMessageOutcome(conversation=remaining)

    def resolve(self, attempt_id: str, conversation_id: str, summary: str, resolved_by: str) -> ConversationDO:
        """
        Resolve a conversation. Not idempotent.

        Raises:
            ValidationError: If the summary is blank or too long
            NotFoundError: If the conversation does not exist in this attempt
            AlreadyResolvedError: If the conversation is already resolved
        """
        self._require_text(summary, "Resolution summary")

        with self.db.transaction():
            conversation = self._require_conversation(attempt_id, conversation_id)
            if conversation.is_resolved:
                raise AlreadyResolvedError(
                    f"Conversation already resolved by {conversation.resolved_by}"
                )
            self.conversations.set_resolution(conversation_id, resolved_by, utc_now(), summary)
            resolved = self._current(attempt_id, conversation_id)

        self.logger.info(f"Resolved conversation {conversation_id} by {resolved_by}")
        return resolved

    def unresolve(self, attempt_id: str, conversation_id: str) -> ConversationDO:
        """
        Re-open a conversation. Unresolving an open conversation is a no-op.

        Raises:
            NotFoundError: If the conversation does not exist in this attempt
        """
        with self.db.transaction():
            conversation = self._require_conversation(attempt_id, conversation_id)
            if conversation.is_resolved:
                self.conversations.clear_resolution(conversation_id, utc_now())
                self.logger.info(f"Unresolved conversation {conversation_id}")
            return self._current(attempt_id, conversation_id)

    def delete(self, attempt_id: str, conversation_id: str) -> None:
        """
        Delete a conversation and all of its messages.

        Raises:
            NotFoundError: If the conversation does not exist in this attempt
        """
        with self.db.transaction():
            self._require_conversation(attempt_id, conversation_id)
            self.messages.delete_by_conversation(conversation_id)
            self.conversations.delete(conversation_id)

        self.logger.info(f"Deleted conversation {conversation_id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_conversation(self, attempt_id: str, conversation_id: str) -> ConversationDO:
        conversation = self.conversations.get(conversation_id)
        if not conversation or conversation.attempt_id != attempt_id:
            raise NotFoundError()
        return conversation

    def _current(self, attempt_id: str, conversation_id: str) -> ConversationDO:
        return self._load(self._require_conversation(attempt_id, conversation_id))

    def _require_text(self, value: Optional[str], label: str) -> None:
        if value is None or not value.strip():
            raise ValidationError(f"{label} cannot be empty")
        if len(value) > self.max_message_length:
            raise ValidationError(f"{label} exceeds {self.max_message_length} characters")

    @staticmethod
    def _require_side(side) -> str:
        try:
            return DiffSide(side).value
        except ValueError:
            raise ValidationError(f"Invalid diff side: {side}")

    def _load(self, conversation: ConversationDO) -> ConversationDO:
        conversation.messages = self.messages.get_by_conversation(conversation.id)
        return conversation

    def _with_messages(self, conversations: List[ConversationDO]) -> List[ConversationDO]:
        grouped = self.messages.get_by_conversations([c.id for c in conversations])
        for conversation in conversations:
            conversation.messages = grouped.get(conversation.id, [])
        return conversations
