"""HTTP client for the review conversation API."""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..models.conversation import ConversationResponse, DeleteMessageResponse, DiffSide
from ..utils.logger import get_app_logger
from .result import Result, TransportError


_conversation_list = TypeAdapter(List[ConversationResponse])
_conversation = TypeAdapter(ConversationResponse)
_delete_message = TypeAdapter(DeleteMessageResponse)


class ConversationApiClient:
    """Thin async client; domain failures become Results, everything else TransportError."""

    def __init__(self, http: httpx.AsyncClient, user: Optional[str] = None):
        """
        Initialize the client.

        Args:
            http: Configured httpx client (base_url pointing at the service)
            user: Identity sent as X-User-Id on every request
        """
        self.http = http
        self.user = user
        self.logger = get_app_logger("client")

    def _path(self, attempt_id: str, *parts: str) -> str:
        return "/".join([f"/api/v1/attempts/{attempt_id}/conversations", *parts]).rstrip("/")

    async def _request(
        self,
        method: str,
        path: str,
        adapter: Optional[TypeAdapter] = None,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Result:
        headers = {"X-User-Id": self.user} if self.user else None
        try:
            response = await self.http.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            self.logger.warning(f"{method} {path} failed: {e}")
            raise TransportError(f"Request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Malformed response ({response.status_code})", status_code=response.status_code
            ) from e

        # Request-shape errors from FastAPI carry no envelope
        if response.status_code == 422 and isinstance(body, dict) and "detail" in body:
            return Result.fail("validation_error", _describe_validation(body["detail"]))

        if not isinstance(body, dict) or "success" not in body:
            raise TransportError(
                f"Unexpected response ({response.status_code})", status_code=response.status_code
            )

        if not body["success"]:
            error = body.get("error_data") or {}
            if error.get("type") not in ("validation_error", "not_found", "already_resolved"):
                raise TransportError(
                    body.get("message") or f"Request failed ({response.status_code})",
                    status_code=response.status_code
                )
            return Result.fail(error["type"], error.get("message") or body.get("message") or "")

        if adapter is None:
            return Result.ok()
        try:
            return Result.ok(adapter.validate_python(body.get("data")))
        except PydanticValidationError as e:
            raise TransportError(f"Malformed response payload: {e}", status_code=response.status_code) from e

    async def list_conversations(self, attempt_id: str, file_path: Optional[str] = None) -> Result[List[ConversationResponse]]:
        params = {"file_path": file_path} if file_path else None
        return await self._request("GET", self._path(attempt_id), _conversation_list, params=params)

    async def list_unresolved(self, attempt_id: str) -> Result[List[ConversationResponse]]:
        return await self._request("GET", self._path(attempt_id, "unresolved"), _conversation_list)

    async def get_conversation(self, attempt_id: str, conversation_id: str) -> Result[ConversationResponse]:
        return await self._request("GET", self._path(attempt_id, conversation_id), _conversation)

    async def create_conversation(
        self,
        attempt_id: str,
        file_path: str,
        line_number: int,
        side: DiffSide,
        initial_message: str,
        code_line: Optional[str] = None
    ) -> Result[ConversationResponse]:
        payload = {
            "file_path": file_path,
            "line_number": line_number,
            "side": DiffSide(side).value,
            "code_line": code_line,
            "initial_message": initial_message,
        }
        return await self._request("POST", self._path(attempt_id), _conversation, json=payload)

    async def add_message(self, attempt_id: str, conversation_id: str, content: str) -> Result[ConversationResponse]:
        return await self._request(
            "POST", self._path(attempt_id, conversation_id, "messages"), _conversation,
            json={"content": content}
        )

    async def delete_message(self, attempt_id: str, conversation_id: str, message_id: str) -> Result[DeleteMessageResponse]:
        return await self._request(
            "DELETE", self._path(attempt_id, conversation_id, "messages", message_id), _delete_message
        )

    async def resolve(self, attempt_id: str, conversation_id: str, summary: str) -> Result[ConversationResponse]:
        return await self._request(
            "POST", self._path(attempt_id, conversation_id, "resolve"), _conversation,
            json={"summary": summary}
        )

    async def unresolve(self, attempt_id: str, conversation_id: str) -> Result[ConversationResponse]:
        return await self._request("POST", self._path(attempt_id, conversation_id, "unresolve"), _conversation)

    async def delete_conversation(self, attempt_id: str, conversation_id: str) -> Result[None]:
        return await self._request("DELETE", self._path(attempt_id, conversation_id))


def _describe_validation(detail) -> str:
    if isinstance(detail, list):
        parts = []
        for item in detail:
            if isinstance(item, dict):
                loc = ".".join(str(p) for p in item.get("loc", []) if p != "body")
                parts.append(f"{loc}: {item.get('msg')}" if loc else str(item.get("msg")))
        if parts:
            return "; ".join(parts)
    return str(detail)
