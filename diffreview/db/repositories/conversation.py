"""Conversation repository for database operations."""

from datetime import datetime
from typing import Optional, List
from .base import BaseRepository
from ..database_models.conversation import ConversationDO


_COLUMNS = """
    id, attempt_id, file_path, line_number, side, code_line,
    is_resolved, resolved_by, resolved_at, resolution_summary,
    created_at, updated_at
"""


def _row_to_conversation(row) -> ConversationDO:
    """Map a review_conversations row to a ConversationDO (messages not loaded)."""
    return ConversationDO(
        id=row[0],
        attempt_id=row[1],
        file_path=row[2],
        line_number=row[3],
        side=row[4],
        code_line=row[5],
        is_resolved=bool(row[6]),
        resolved_by=row[7],
        resolved_at=row[8],
        resolution_summary=row[9],
        created_at=row[10],
        updated_at=row[11],
    )


class ConversationRepository(BaseRepository):
    """Repository for review conversation rows.

    Methods raise on database failure; callers own the transaction.
    """

    def create(self, conversation: ConversationDO) -> None:
        """
        Insert a new conversation record.

        Args:
            conversation: ConversationDO instance
        """
        try:
            self.conn.execute("""
                INSERT INTO review_conversations (
                    id, attempt_id, file_path, line_number, side, code_line,
                    is_resolved, resolved_by, resolved_at, resolution_summary,
                    created_at, updated_at, seq
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, nextval('review_conversations_seq'))
            """, [
                conversation.id,
                conversation.attempt_id,
                conversation.file_path,
                conversation.line_number,
                conversation.side,
                conversation.code_line,
                conversation.is_resolved,
                conversation.resolved_by,
                conversation.resolved_at,
                conversation.resolution_summary,
                conversation.created_at,
                conversation.updated_at,
            ])
            self.logger.debug(f"Inserted conversation record: {conversation.id}")
        except Exception as e:
            self.logger.error(f"Failed to create conversation: {e}")
            raise

    def get(self, conversation_id: str) -> Optional[ConversationDO]:
        """
        Get conversation by ID.

        Args:
            conversation_id: Conversation ID

        Returns:
            ConversationDO instance or None
        """
        result = self.conn.execute(f"""
            SELECT {_COLUMNS}
            FROM review_conversations
            WHERE id = ?
        """, [conversation_id]).fetchone()

        return _row_to_conversation(result) if result else None

    def list_by_attempt(self, attempt_id: str, unresolved_only: bool = False) -> List[ConversationDO]:
        """
        List conversations for an attempt in creation order.

        Args:
            attempt_id: Attempt ID
            unresolved_only: Only return conversations that are not resolved

        Returns:
            List of ConversationDO instances
        """
        query = f"""
            SELECT {_COLUMNS}
            FROM review_conversations
            WHERE attempt_id = ?
        """
        if unresolved_only:
            query += " AND is_resolved = FALSE"
        query += " ORDER BY created_at ASC, seq ASC"

        results = self.conn.execute(query, [attempt_id]).fetchall()
        return [_row_to_conversation(row) for row in results]

    def list_by_file(self, attempt_id: str, file_path: str) -> List[ConversationDO]:
        """
        List conversations anchored to one file, ordered by line.

        Args:
            attempt_id: Attempt ID
            file_path: Relative file path

        Returns:
            List of ConversationDO instances
        """
        results = self.conn.execute(f"""
            SELECT {_COLUMNS}
            FROM review_conversations
            WHERE attempt_id = ? AND file_path = ?
            ORDER BY line_number ASC, created_at ASC, seq ASC
        """, [attempt_id, file_path]).fetchall()

        return [_row_to_conversation(row) for row in results]

    def find_at(self, attempt_id: str, file_path: str, side: str, line_number: int) -> Optional[ConversationDO]:
        """
        Find the earliest conversation occupying an anchor.

        Args:
            attempt_id: Attempt ID
            file_path: Relative file path
            side: Diff side ("old" or "new")
            line_number: 1-based line number

        Returns:
            ConversationDO instance or None
        """
        result = self.conn.execute(f"""
            SELECT {_COLUMNS}
            FROM review_conversations
            WHERE attempt_id = ? AND file_path = ? AND side = ? AND line_number = ?
            ORDER BY created_at ASC, seq ASC
            LIMIT 1
        """, [attempt_id, file_path, side, line_number]).fetchone()

        return _row_to_conversation(result) if result else None

    def set_resolution(
        self,
        conversation_id: str,
        resolved_by: str,
        resolved_at: datetime,
        summary: str
    ) -> None:
        """
        Set all four resolution fields in one statement.

        Args:
            conversation_id: Conversation ID
            resolved_by: Identity of the resolver
            resolved_at: Resolution timestamp
            summary: Resolution summary
        """
        self.conn.execute("""
            UPDATE review_conversations
            SET is_resolved = TRUE,
                resolved_by = ?,
                resolved_at = ?,
                resolution_summary = ?,
                updated_at = ?
            WHERE id = ?
        """, [resolved_by, resolved_at, summary, resolved_at, conversation_id])

    def clear_resolution(self, conversation_id: str, updated_at: datetime) -> None:
        """
        Clear all four resolution fields in one statement.

        Args:
            conversation_id: Conversation ID
            updated_at: Modification timestamp
        """
        self.conn.execute("""
            UPDATE review_conversations
            SET is_resolved = FALSE,
                resolved_by = NULL,
                resolved_at = NULL,
                resolution_summary = NULL,
                updated_at = ?
            WHERE id = ?
        """, [updated_at, conversation_id])

    def touch(self, conversation_id: str, updated_at: datetime) -> None:
        """Bump updated_at after a message change."""
        self.conn.execute("""
            UPDATE review_conversations
            SET updated_at = ?
            WHERE id = ?
        """, [updated_at, conversation_id])

    def delete(self, conversation_id: str) -> bool:
        """
        Delete conversation by ID.

        Args:
            conversation_id: Conversation ID

        Returns:
            True if a row was removed
        """
        exists = self.conn.execute(
            "SELECT 1 FROM review_conversations WHERE id = ?", [conversation_id]
        ).fetchone()
        if not exists:
            return False

        self.conn.execute("DELETE FROM review_conversations WHERE id = ?", [conversation_id])
        self.logger.debug(f"Deleted conversation record: {conversation_id}")
        return True
