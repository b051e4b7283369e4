"""Tests for the review conversation API."""

import pytest

from diffreview.api.v1 import conversations


ATTEMPT = "attempt-1"
BASE = f"/api/v1/attempts/{ATTEMPT}/conversations"


async def _create(client, line=42, side="new", message="why is this needed?", user="alice", **extra):
    payload = {
        "file_path": "src/main.rs",
        "line_number": line,
        "side": side,
        "code_line": "let x = 1;",
        "initial_message": message,
    }
    payload.update(extra)
    return await client.post(BASE, json=payload, headers={"X-User-Id": user})


class TestCreateConversation:
    """Tests for POST /conversations."""

    async def test_create(self, client):
        """Create returns the conversation with its first message."""
        response = await _create(client)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["error_data"] is None
        data = body["data"]
        assert data["attempt_id"] == ATTEMPT
        assert data["line_number"] == 42
        assert data["side"] == "new"
        assert data["is_resolved"] is False
        assert [m["content"] for m in data["messages"]] == ["why is this needed?"]
        assert data["messages"][0]["author"] == "alice"

    async def test_default_user(self, client):
        """Requests without X-User-Id use the default identity."""
        response = await client.post(BASE, json={
            "file_path": "a.py", "line_number": 1, "side": "old", "initial_message": "hi"
        })
        assert response.json()["data"]["messages"][0]["author"] == "anonymous"

    async def test_blank_message(self, client):
        """Blank text is a tagged validation error with 400."""
        response = await _create(client, message="   ")
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["error_data"]["type"] == "validation_error"
        assert body["message"] == body["error_data"]["message"]

    async def test_occupied_anchor(self, client):
        await _create(client)
        response = await _create(client, message="again")
        assert response.status_code == 400
        assert response.json()["error_data"]["type"] == "validation_error"

    @pytest.mark.parametrize("field, value", [("side", "middle"), ("line_number", 0)])
    async def test_request_shape_errors(self, client, field, value):
        """Malformed bodies are rejected by FastAPI with 422."""
        response = await _create(client, **{field: value})
        assert response.status_code == 422


class TestReadConversations:
    """Tests for the read endpoints."""

    async def test_list_and_unresolved(self, client):
        first = (await _create(client, line=1)).json()["data"]
        second = (await _create(client, line=2)).json()["data"]
        await client.post(f"{BASE}/{first['id']}/resolve", json={"summary": "done"})

        listed = (await client.get(BASE)).json()["data"]
        assert [c["id"] for c in listed] == [first["id"], second["id"]]

        unresolved = (await client.get(f"{BASE}/unresolved")).json()["data"]
        assert [c["id"] for c in unresolved] == [second["id"]]

    async def test_list_by_file(self, client):
        await _create(client, line=9)
        await client.post(BASE, json={
            "file_path": "README.md", "line_number": 1, "side": "new", "initial_message": "typo"
        })
        listed = (await client.get(BASE, params={"file_path": "README.md"})).json()["data"]
        assert [c["file_path"] for c in listed] == ["README.md"]

    async def test_list_is_attempt_scoped(self, client):
        await _create(client)
        response = await client.get("/api/v1/attempts/other/conversations")
        assert response.json()["data"] == []

    async def test_get(self, client):
        created = (await _create(client)).json()["data"]
        response = await client.get(f"{BASE}/{created['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == created["id"]

    async def test_get_not_found(self, client):
        response = await client.get(f"{BASE}/missing")
        assert response.status_code == 404
        assert response.json()["error_data"] == {"type": "not_found", "message": "Conversation not found"}


class TestMessages:
    """Tests for message endpoints."""

    async def test_add_message(self, client):
        created = (await _create(client)).json()["data"]
        response = await client.post(
            f"{BASE}/{created['id']}/messages", json={"content": "see ticket #7"}, headers={"X-User-Id": "bob"}
        )
        assert response.status_code == 201
        messages = response.json()["data"]["messages"]
        assert [(m["author"], m["content"]) for m in messages] == [
            ("alice", "why is this needed?"), ("bob", "see ticket #7")
        ]

    async def test_add_message_not_found(self, client):
        response = await client.post(f"{BASE}/missing/messages", json={"content": "hi"})
        assert response.status_code == 404

    async def test_delete_message_keeps_conversation(self, client):
        created = (await _create(client)).json()["data"]
        updated = (await client.post(f"{BASE}/{created['id']}/messages", json={"content": "x"})).json()["data"]
        response = await client.delete(f"{BASE}/{created['id']}/messages/{updated['messages'][1]['id']}")
        data = response.json()["data"]
        assert data["conversation_deleted"] is False
        assert len(data["conversation"]["messages"]) == 1

    async def test_delete_last_message(self, client):
        """Deleting the only message removes the conversation."""
        created = (await _create(client)).json()["data"]
        response = await client.delete(f"{BASE}/{created['id']}/messages/{created['messages'][0]['id']}")
        assert response.status_code == 200
        assert response.json()["data"] == {"conversation_deleted": True, "conversation": None}
        assert (await client.get(f"{BASE}/{created['id']}")).status_code == 404

    async def test_delete_unknown_message(self, client):
        created = (await _create(client)).json()["data"]
        response = await client.delete(f"{BASE}/{created['id']}/messages/missing")
        assert response.status_code == 404
        assert response.json()["error_data"]["message"] == "Message not found"


class TestResolution:
    """Tests for resolve and unresolve endpoints."""

    async def test_resolve_and_unresolve(self, client):
        created = (await _create(client)).json()["data"]
        resolved = await client.post(
            f"{BASE}/{created['id']}/resolve", json={"summary": "fixed"}, headers={"X-User-Id": "bob"}
        )
        data = resolved.json()["data"]
        assert data["is_resolved"] is True
        assert data["resolved_by"] == "bob"
        assert data["resolution_summary"] == "fixed"
        assert data["resolved_at"] is not None

        reopened = (await client.post(f"{BASE}/{created['id']}/unresolve")).json()["data"]
        assert reopened["is_resolved"] is False
        assert reopened["resolved_by"] is None
        assert reopened["resolved_at"] is None
        assert reopened["resolution_summary"] is None

    async def test_resolve_twice(self, client):
        """Second resolve is a 409 naming the first resolver."""
        created = (await _create(client)).json()["data"]
        await client.post(f"{BASE}/{created['id']}/resolve", json={"summary": "a"}, headers={"X-User-Id": "bob"})
        response = await client.post(f"{BASE}/{created['id']}/resolve", json={"summary": "b"})
        assert response.status_code == 409
        error = response.json()["error_data"]
        assert error["type"] == "already_resolved"
        assert "bob" in error["message"]

    async def test_resolve_blank_summary(self, client):
        created = (await _create(client)).json()["data"]
        response = await client.post(f"{BASE}/{created['id']}/resolve", json={"summary": ""})
        assert response.status_code == 400

    async def test_unresolve_open_conversation(self, client):
        created = (await _create(client)).json()["data"]
        response = await client.post(f"{BASE}/{created['id']}/unresolve")
        assert response.status_code == 200
        assert response.json()["data"]["is_resolved"] is False


class TestDeleteConversation:
    """Tests for DELETE /conversations/{id}."""

    async def test_delete(self, client):
        created = (await _create(client)).json()["data"]
        response = await client.delete(f"{BASE}/{created['id']}")
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert (await client.get(BASE)).json()["data"] == []

    async def test_delete_missing(self, client):
        response = await client.delete(f"{BASE}/missing")
        assert response.status_code == 404


class TestStoreNotInitialized:
    """The router refuses to work without a store."""

    async def test_500_without_store(self, client):
        conversations.store = None
        response = await client.get(BASE)
        assert response.status_code == 500
