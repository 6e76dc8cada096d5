"""httpx implementation of the chat API ports."""
from __future__ import annotations

import logging
import time
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError as SchemaValidationError

from chat_client.application.dto.message import CreateMessageDTO, MessagePage
from chat_client.application.dto.upload import UploadInitDTO
from chat_client.application.exceptions import ApiError
from chat_client.application.ports.auth import TokenProvider
from chat_client.config import settings
from chat_client.domain.entities.conversation import ConversationInfo, ConversationSummary
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.upload import UploadTicket
from chat_client.infrastructure.http import mappers
from chat_client.infrastructure.http.correlation_id import HEADER, current_request_id
from chat_client.infrastructure.http.schemas import (
    ConversationEnvelope,
    ConversationListSchema,
    MessagePageSchema,
    MessageSchema,
    UploadCompleteRequest,
    UploadInitResponse,
    WireModel,
)

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=WireModel)

API_PREFIX = "/api/chat"


class HttpChatApi:
    """Implements application.ports.api.ChatApi over HTTP."""

    def __init__(
        self,
        tokens: TokenProvider,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._tokens = tokens
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> HttpChatApi:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -- conversations -----------------------------------------------------

    async def get_conversation(self, conversation_id: str) -> ConversationInfo:
        resp = await self._request("GET", f"{API_PREFIX}/conversations/{conversation_id}")
        envelope = _parse(ConversationEnvelope, resp)
        return mappers.schema_to_conversation(envelope.conversation)

    async def list_conversations(self) -> list[ConversationSummary]:
        resp = await self._request("GET", f"{API_PREFIX}/conversations")
        listing = _parse(ConversationListSchema, resp)
        return [mappers.schema_to_summary(c) for c in listing.conversations]

    async def mark_read(self, conversation_id: str) -> None:
        await self._request("POST", f"{API_PREFIX}/conversations/{conversation_id}/read")

    # -- messages ----------------------------------------------------------

    async def list_messages(
        self,
        conversation_id: str,
        *,
        cursor: str | None = None,
        limit: int | None = None,
        after: str | None = None,
    ) -> MessagePage:
        params: dict[str, Any] = {"cursor": cursor, "limit": limit, "after": after}
        resp = await self._request(
            "GET",
            f"{API_PREFIX}/conversations/{conversation_id}/messages",
            params={k: v for k, v in params.items() if v is not None},
        )
        page = _parse(MessagePageSchema, resp)
        return MessagePage(
            messages=[mappers.schema_to_message(m, conversation_id) for m in page.messages],
            has_more=page.has_more,
            next_cursor=page.next_cursor,
        )

    async def create_message(self, conversation_id: str, request: CreateMessageDTO) -> Message:
        body = mappers.create_dto_to_request(request).to_wire()
        resp = await self._request(
            "POST",
            f"{API_PREFIX}/conversations/{conversation_id}/messages",
            json=body,
        )
        return mappers.schema_to_message(_parse(MessageSchema, resp), conversation_id)

    # -- uploads -----------------------------------------------------------

    async def init_upload(self, request: UploadInitDTO) -> UploadTicket:
        body = mappers.init_dto_to_request(request).to_wire()
        resp = await self._request("POST", f"{API_PREFIX}/uploads/init", json=body)
        ticket = _parse(UploadInitResponse, resp)
        return UploadTicket(attachment_id=ticket.attachment_id, upload_url=ticket.upload_url)

    async def transfer(self, upload_url: str, data: bytes, mime_type: str) -> None:
        await self._request(
            "PUT",
            upload_url,
            content=data,
            headers={"Content-Type": mime_type},
            authenticated=False,
        )

    async def complete_upload(self, attachment_id: str) -> None:
        body = UploadCompleteRequest(attachment_id=attachment_id).to_wire()
        await self._request("POST", f"{API_PREFIX}/uploads/complete", json=body)

    # -- transport ---------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        request_headers = {HEADER: current_request_id(), **(headers or {})}
        if authenticated:
            try:
                token = await self._tokens.get_token()
            except Exception as exc:
                logger.warning("%s %s token unavailable: %s", method, url, exc)
                raise ApiError(f"{method} {url} failed: could not obtain token: {exc}") from exc
            request_headers["Authorization"] = f"Bearer {token}"

        start = time.perf_counter()
        try:
            resp = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                content=content,
                headers=request_headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s transport error: %s", method, url, exc)
            raise ApiError(f"{method} {url} failed: {exc}") from exc

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("%s %s %s %.1fms", method, url, resp.status_code, elapsed_ms)
        if not resp.is_success:
            raise ApiError(
                f"{method} {url} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp


def _parse(schema: type[S], resp: httpx.Response) -> S:
    try:
        return schema.model_validate(resp.json())
    except (ValueError, SchemaValidationError) as exc:
        raise ApiError(
            f"Malformed response from {resp.request.url.path}: {exc}",
            status_code=resp.status_code,
        ) from exc
