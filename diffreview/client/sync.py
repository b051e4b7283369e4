"""Sync/cache layer for review conversations.

Mutations go to the server first; the local cache only changes after the
server has answered. On success the returned conversation is written into its
single-conversation slot (or the slot is removed when the conversation is
gone) and both list queries of the attempt are marked stale, so every open
view refetches on its next read. There is no server push.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..models.conversation import ConversationResponse, DeleteMessageResponse, DiffSide
from ..models.overlay import FileOverlay, OverlaySummary, ReviewComment
from ..services.drafts import DraftKey, DraftRegistry
from ..services.external_comments import ExternalCommentAdapter
from ..services.overlay import resolve_overlay, summarize_file
from ..utils.logger import get_app_logger
from .cache import QueryCache, QueryKey, conversation_keys
from .http import ConversationApiClient
from .result import Result


class ConversationSync:
    """Cached reads and cache-coordinated mutations for one client."""

    def __init__(
        self,
        api: ConversationApiClient,
        cache: Optional[QueryCache] = None,
        list_stale_seconds: float = 60.0,
        single_stale_seconds: float = 10.0
    ):
        """
        Initialize the sync layer.

        Args:
            api: Conversation API client
            cache: Query cache (a private one is created if omitted)
            list_stale_seconds: Age after which list queries refetch
            single_stale_seconds: Age after which single-conversation queries refetch
        """
        self.api = api
        self.cache = cache if cache is not None else QueryCache()
        self.list_stale_seconds = list_stale_seconds
        self.single_stale_seconds = single_stale_seconds
        self.logger = get_app_logger("client")
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._lock_users: Dict[Tuple[str, str], int] = {}
        self._refreshing: Dict[QueryKey, asyncio.Task] = {}
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_conversations(
        self, attempt_id: str, fresh: bool = False, background: bool = False
    ) -> Result[List[ConversationResponse]]:
        """All conversations of an attempt."""
        return await self._read(
            conversation_keys.by_attempt(attempt_id),
            lambda: self.api.list_conversations(attempt_id),
            self.list_stale_seconds, fresh, background
        )

    async def list_unresolved(
        self, attempt_id: str, fresh: bool = False, background: bool = False
    ) -> Result[List[ConversationResponse]]:
        """Unresolved conversations of an attempt."""
        return await self._read(
            conversation_keys.unresolved(attempt_id),
            lambda: self.api.list_unresolved(attempt_id),
            self.list_stale_seconds, fresh, background
        )

    async def get_conversation(
        self, attempt_id: str, conversation_id: str, fresh: bool = False, background: bool = False
    ) -> Result[ConversationResponse]:
        """One conversation; a not_found answer evicts its slot."""
        return await self._read(
            conversation_keys.single(attempt_id, conversation_id),
            lambda: self.api.get_conversation(attempt_id, conversation_id),
            self.single_stale_seconds, fresh, background
        )

    async def unresolved_count(self, attempt_id: str) -> int:
        """Number of open conversations; callers gate "continue" actions on it being zero."""
        result = await self.list_unresolved(attempt_id)
        return len(result.data or []) if result.success else 0

    async def has_unresolved(self, attempt_id: str) -> bool:
        return await self.unresolved_count(attempt_id) > 0

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_conversation(
        self,
        attempt_id: str,
        file_path: str,
        line_number: int,
        side: DiffSide,
        initial_message: str,
        code_line: Optional[str] = None
    ) -> Result[ConversationResponse]:
        result = await self.api.create_conversation(
            attempt_id, file_path, line_number, side, initial_message, code_line=code_line
        )
        if result.success:
            self.cache.set_query_data(conversation_keys.single(attempt_id, result.data.id), result.data)
            self._invalidate_lists(attempt_id)
        return result

    async def add_message(self, attempt_id: str, conversation_id: str, content: str) -> Result[ConversationResponse]:
        async with self._conversation_lock(attempt_id, conversation_id):
            result = await self.api.add_message(attempt_id, conversation_id, content)
            self._apply(attempt_id, conversation_id, result)
            return result

    async def resolve(self, attempt_id: str, conversation_id: str, summary: str) -> Result[ConversationResponse]:
        async with self._conversation_lock(attempt_id, conversation_id):
            result = await self.api.resolve(attempt_id, conversation_id, summary)
            self._apply(attempt_id, conversation_id, result)
            return result

    async def unresolve(self, attempt_id: str, conversation_id: str) -> Result[ConversationResponse]:
        async with self._conversation_lock(attempt_id, conversation_id):
            result = await self.api.unresolve(attempt_id, conversation_id)
            self._apply(attempt_id, conversation_id, result)
            return result

    async def delete_message(
        self, attempt_id: str, conversation_id: str, message_id: str
    ) -> Result[DeleteMessageResponse]:
        async with self._conversation_lock(attempt_id, conversation_id):
            result = await self.api.delete_message(attempt_id, conversation_id, message_id)
            key = conversation_keys.single(attempt_id, conversation_id)
            if result.success:
                if result.data.conversation_deleted:
                    self.cache.remove(key)
                else:
                    self.cache.set_query_data(key, result.data.conversation)
                self._invalidate_lists(attempt_id)
            else:
                self._react_to_failure(attempt_id, conversation_id, result)
            return result

    async def delete_conversation(self, attempt_id: str, conversation_id: str) -> Result[None]:
        async with self._conversation_lock(attempt_id, conversation_id):
            result = await self.api.delete_conversation(attempt_id, conversation_id)
            if result.success:
                self.cache.remove(conversation_keys.single(attempt_id, conversation_id))
                self._invalidate_lists(attempt_id)
            else:
                self._react_to_failure(attempt_id, conversation_id, result)
            return result

    async def submit_draft(
        self, attempt_id: str, drafts: DraftRegistry, key: DraftKey
    ) -> Optional[Result[ConversationResponse]]:
        """
        Turn a draft into a conversation.

        An empty draft is dropped and nothing is sent. A draft survives a
        failed submission so the text is not lost.

        Returns:
            The create result, or None when there was nothing to submit
        """
        draft = drafts.get_draft(key)
        if draft is None or draft.is_empty:
            drafts.clear_draft(key)
            return None

        result = await self.create_conversation(
            attempt_id, key.file_path, key.line_number, key.side, draft.text, code_line=draft.code_line
        )
        if result.success:
            drafts.clear_draft(key)
        return result

    # ------------------------------------------------------------------
    # Overlay
    # ------------------------------------------------------------------

    async def build_overlay(
        self,
        attempt_id: str,
        file_path: str,
        review_comments: Iterable[ReviewComment] = (),
        external: Optional[ExternalCommentAdapter] = None
    ) -> FileOverlay:
        """Merge cached conversations, local review comments and external comments for a file."""
        conversations = await self._conversations_or_empty(attempt_id)
        external_comments = external.list_external_comments(file_path) if external else []
        return resolve_overlay(file_path, conversations, review_comments, external_comments)

    async def summarize_file(
        self,
        attempt_id: str,
        file_path: str,
        review_comments: Iterable[ReviewComment] = (),
        external: Optional[ExternalCommentAdapter] = None
    ) -> OverlaySummary:
        conversations = await self._conversations_or_empty(attempt_id)
        external_comments = external.list_external_comments(file_path) if external else []
        return summarize_file(file_path, conversations, review_comments, external_comments)

    async def wait_for_background(self) -> None:
        """Wait until pending background refreshes have finished."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _conversations_or_empty(self, attempt_id: str) -> List[ConversationResponse]:
        result = await self.list_conversations(attempt_id)
        return (result.data or []) if result.success else []

    async def _read(
        self,
        key: QueryKey,
        fetch: Callable[[], Awaitable[Result]],
        stale_after: float,
        fresh: bool,
        background: bool
    ) -> Result:
        if not fresh and key in self.cache:
            if not self.cache.is_stale(key, stale_after):
                return Result.ok(self.cache.get_query_data(key))
            if background:
                self._refresh_in_background(key, fetch)
                return Result.ok(self.cache.get_query_data(key))

        generation = self.cache.generation(key)
        result = await fetch()
        self._store_read(key, result, generation)
        return result

    def _store_read(self, key: QueryKey, result: Result, generation: int) -> None:
        # A mutation that landed while the fetch was in flight wins
        if result.success:
            stored = self.cache.set_if_unchanged(key, result.data, generation)
        elif result.is_not_found:
            stored = self.cache.remove_if_unchanged(key, generation)
        else:
            return
        if not stored:
            self.logger.debug(f"Dropped superseded read of {key}")

    def _refresh_in_background(self, key: QueryKey, fetch: Callable[[], Awaitable[Result]]) -> None:
        if key in self._refreshing:
            return
        generation = self.cache.generation(key)

        async def refresh():
            try:
                self._store_read(key, await fetch(), generation)
            except Exception as e:
                # The stale entry stays; the next read retries
                self.logger.warning(f"Background refresh of {key} failed: {e}")
            finally:
                self._refreshing.pop(key, None)

        task = asyncio.create_task(refresh())
        self._refreshing[key] = task
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _apply(self, attempt_id: str, conversation_id: str, result: Result[ConversationResponse]) -> None:
        if result.success:
            self.cache.set_query_data(conversation_keys.single(attempt_id, conversation_id), result.data)
            self._invalidate_lists(attempt_id)
        else:
            self._react_to_failure(attempt_id, conversation_id, result)

    def _react_to_failure(self, attempt_id: str, conversation_id: str, result: Result) -> None:
        if result.is_not_found:
            # Someone else already removed it
            self.cache.remove(conversation_keys.single(attempt_id, conversation_id))
            self._invalidate_lists(attempt_id)
        elif result.is_already_resolved:
            self.cache.invalidate(conversation_keys.single(attempt_id, conversation_id))
            self._invalidate_lists(attempt_id)

    def _invalidate_lists(self, attempt_id: str) -> None:
        self.cache.invalidate(conversation_keys.by_attempt(attempt_id))
        self.cache.invalidate(conversation_keys.unresolved(attempt_id))

    @asynccontextmanager
    async def _conversation_lock(self, attempt_id: str, conversation_id: str):
        """Serialize mutations of one conversation.

        The lock entry lives only while some mutation holds or waits for it,
        so deleted conversations leave nothing behind.
        """
        key = (attempt_id, conversation_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]
