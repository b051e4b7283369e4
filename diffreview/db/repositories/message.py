"""Message repository for database operations."""

from collections import defaultdict
from datetime import datetime
from typing import Dict, Optional, List
from .base import BaseRepository
from ..database_models.message import MessageDO


def _row_to_message(row) -> MessageDO:
    return MessageDO(
        id=row[0],
        conversation_id=row[1],
        author=row[2],
        content=row[3],
        created_at=row[4],
    )


class MessageRepository(BaseRepository):
    """Repository for review conversation messages."""

    def add(self, message: MessageDO) -> None:
        """
        Insert a new message.

        Args:
            message: MessageDO instance
        """
        try:
            self.conn.execute("""
                INSERT INTO review_conversation_messages (id, conversation_id, author, content, created_at, seq)
                VALUES (?, ?, ?, ?, ?, nextval('review_messages_seq'))
            """, [
                message.id,
                message.conversation_id,
                message.author,
                message.content,
                message.created_at,
            ])
            self.logger.debug(f"Added message {message.id} to conversation {message.conversation_id}")
        except Exception as e:
            self.logger.error(f"Failed to add message: {e}")
            raise

    def get(self, message_id: str) -> Optional[MessageDO]:
        """
        Get message by ID.

        Args:
            message_id: Message ID

        Returns:
            MessageDO instance or None
        """
        result = self.conn.execute("""
            SELECT id, conversation_id, author, content, created_at
            FROM review_conversation_messages
            WHERE id = ?
        """, [message_id]).fetchone()

        return _row_to_message(result) if result else None

    def get_by_conversation(self, conversation_id: str) -> List[MessageDO]:
        """
        Get messages for a conversation.

        Args:
            conversation_id: Conversation ID

        Returns:
            List of MessageDO instances (insertion order)
        """
        results = self.conn.execute("""
            SELECT id, conversation_id, author, content, created_at
            FROM review_conversation_messages
            WHERE conversation_id = ?
            ORDER BY created_at ASC, seq ASC
        """, [conversation_id]).fetchall()

        return [_row_to_message(row) for row in results]

    def get_by_conversations(self, conversation_ids: List[str]) -> Dict[str, List[MessageDO]]:
        """
        Get messages for several conversations in one query.

        Args:
            conversation_ids: Conversation IDs

        Returns:
            Mapping of conversation ID to its messages (insertion order)
        """
        grouped: Dict[str, List[MessageDO]] = defaultdict(list)
        if not conversation_ids:
            return grouped

        placeholders = ", ".join("?" for _ in conversation_ids)
        results = self.conn.execute(f"""
            SELECT id, conversation_id, author, content, created_at
            FROM review_conversation_messages
            WHERE conversation_id IN ({placeholders})
            ORDER BY created_at ASC, seq ASC
        """, list(conversation_ids)).fetchall()

        for row in results:
            message = _row_to_message(row)
            grouped[message.conversation_id].append(message)
        return grouped

    def count_by_conversation(self, conversation_id: str) -> int:
        """Count remaining messages of a conversation."""
        result = self.conn.execute("""
            SELECT COUNT(*) FROM review_conversation_messages WHERE conversation_id = ?
        """, [conversation_id]).fetchone()
        return result[0] if result else 0

    def get_latest_created_at(self, conversation_id: str) -> Optional[datetime]:
        """
        Get the newest message timestamp of a conversation.

        Args:
            conversation_id: Conversation ID

        Returns:
            Latest created_at or None when there are no messages
        """
        result = self.conn.execute("""
            SELECT MAX(created_at) FROM review_conversation_messages WHERE conversation_id = ?
        """, [conversation_id]).fetchone()
        return result[0] if result else None

    def delete(self, message_id: str) -> None:
        """Delete a single message."""
        self.conn.execute("DELETE FROM review_conversation_messages WHERE id = ?", [message_id])

    def delete_by_conversation(self, conversation_id: str) -> None:
        """
        Delete all messages for a conversation.

        Args:
            conversation_id: Conversation ID
        """
        self.conn.execute("""
            DELETE FROM review_conversation_messages WHERE conversation_id = ?
        """, [conversation_id])
