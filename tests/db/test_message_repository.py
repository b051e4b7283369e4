"""Tests for MessageRepository."""

from datetime import datetime, timedelta

import pytest

from diffreview.db.database_models import MessageDO
from diffreview.db.repositories.message import MessageRepository


BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture
def repo(db):
    return MessageRepository(db.conn)


def _message(msg_id, conversation_id="c1", content="hello", offset=0):
    return MessageDO(
        id=msg_id,
        conversation_id=conversation_id,
        author="alice",
        content=content,
        created_at=BASE_TIME + timedelta(seconds=offset),
    )


class TestMessageRepository:
    """Tests for MessageRepository."""

    def test_add_and_get(self, repo):
        """Added message reads back."""
        repo.add(_message("m1", content="why is this needed?"))
        msg = repo.get("m1")
        assert msg.conversation_id == "c1"
        assert msg.author == "alice"
        assert msg.content == "why is this needed?"
        assert msg.created_at == BASE_TIME

    def test_get_missing(self, repo):
        assert repo.get("nope") is None

    def test_get_by_conversation_insertion_order(self, repo):
        """Equal timestamps keep insertion order."""
        repo.add(_message("m1"))
        repo.add(_message("m2"))
        repo.add(_message("m3"))
        repo.add(_message("x", conversation_id="c2"))
        assert [m.id for m in repo.get_by_conversation("c1")] == ["m1", "m2", "m3"]

    def test_get_by_conversations_groups(self, repo):
        """Batch lookup groups messages per conversation."""
        repo.add(_message("m1", conversation_id="c1"))
        repo.add(_message("m2", conversation_id="c2"))
        repo.add(_message("m3", conversation_id="c1", offset=1))
        grouped = repo.get_by_conversations(["c1", "c2", "c3"])
        assert [m.id for m in grouped["c1"]] == ["m1", "m3"]
        assert [m.id for m in grouped["c2"]] == ["m2"]
        assert grouped.get("c3", []) == []

    def test_get_by_conversations_empty(self, repo):
        """No ids means no query and an empty mapping."""
        assert dict(repo.get_by_conversations([])) == {}

    def test_count_and_latest(self, repo):
        """Count and newest timestamp follow the rows."""
        assert repo.count_by_conversation("c1") == 0
        assert repo.get_latest_created_at("c1") is None
        repo.add(_message("m1", offset=0))
        repo.add(_message("m2", offset=30))
        assert repo.count_by_conversation("c1") == 2
        assert repo.get_latest_created_at("c1") == BASE_TIME + timedelta(seconds=30)

    def test_delete(self, repo):
        repo.add(_message("m1"))
        repo.add(_message("m2"))
        repo.delete("m1")
        assert [m.id for m in repo.get_by_conversation("c1")] == ["m2"]

    def test_delete_by_conversation(self, repo):
        """Only the target conversation's messages go."""
        repo.add(_message("m1"))
        repo.add(_message("m2", conversation_id="c2"))
        repo.delete_by_conversation("c1")
        assert repo.count_by_conversation("c1") == 0
        assert repo.count_by_conversation("c2") == 1
