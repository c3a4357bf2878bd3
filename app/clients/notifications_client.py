from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..config import get_settings
from ..models import NotificationRecord
from ..schemas.notifications import RemoteNotification, RemoteNotificationsResponse

logger = logging.getLogger(__name__)


class FeedError(RuntimeError):
    """Base class for failures talking to the notification endpoint."""


class TransportError(FeedError):
    """Raised on network failures, unexpected statuses or malformed payloads."""


class AuthError(FeedError):
    """Raised when the remote rejects the session credentials."""


class NotificationFilter(StrEnum):
    HIGHLIGHT = "highlight"


@dataclass(frozen=True)
class FetchResult:
    records: tuple[NotificationRecord, ...]
    next_cursor: str | None = None


class NotificationGateway(Protocol):
    async def fetch_page(
        self,
        cursor: str | None,
        page_size: int,
        only: NotificationFilter | None = None,
    ) -> FetchResult:
        ...

    async def mark_read(self, conversation_id: str) -> None:
        ...


def freeze_payload(value: Any) -> Any:
    """Return a deeply read-only copy: mappings become proxies, lists become tuples."""

    if isinstance(value, dict):
        return MappingProxyType({key: freeze_payload(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(freeze_payload(item) for item in value)
    return value


def to_record(item: RemoteNotification) -> NotificationRecord:
    """Flatten one remote notification into a read-only record."""

    event = item.event
    timestamp = event.origin_server_ts if event.origin_server_ts is not None else item.ts
    return NotificationRecord(
        conversation_id=item.room_id,
        event_id=event.event_id,
        sender_id=event.sender,
        timestamp_ms=int(timestamp or 0),
        payload=freeze_payload(event.model_dump(mode="json")),
        read=item.read,
    )


class NotificationsClient:
    """Fetch gateway over the remote ``/notifications`` query.

    Errors are raised to the caller as :class:`TransportError` or
    :class:`AuthError`; nothing is retried here.
    """

    def __init__(
        self,
        access_token: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._access_token = access_token
        self._base_url = (base_url or settings.notifications_base_url).rstrip("/")
        self._timeout = float(timeout if timeout is not None else settings.notifications_timeout)
        self._notifications_path = settings.notifications_path
        self._mark_read_path = settings.mark_read_path
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        if not self._access_token:
            return {}
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _request(self, method: str, path: str, *, params: dict[str, Any] | None = None) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(method, url, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Notification request %s %s failed: %s", method, path, exc)
            raise TransportError(f"Request to {path} failed") from exc

        if response.status_code in (401, 403):
            raise AuthError(f"Session rejected with HTTP {response.status_code}")
        if response.is_error:
            raise TransportError(f"{path} returned HTTP {response.status_code}")
        return response

    async def fetch_page(
        self,
        cursor: str | None,
        page_size: int,
        only: NotificationFilter | None = None,
    ) -> FetchResult:
        if page_size < 1:
            raise ValueError("page_size must be positive")

        params: dict[str, Any] = {"limit": page_size}
        if cursor is not None:
            params["from"] = cursor
        if only is not None:
            params["only"] = str(only)

        response = await self._request("GET", self._notifications_path, params=params)
        try:
            body = RemoteNotificationsResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TransportError("Malformed notifications response") from exc

        records = tuple(to_record(item) for item in body.notifications)
        return FetchResult(records=records, next_cursor=body.next_token)

    async def mark_read(self, conversation_id: str) -> None:
        path = self._mark_read_path.format(conversation_id=quote(conversation_id, safe=""))
        await self._request("POST", path)


__all__ = [
    "FeedError",
    "TransportError",
    "AuthError",
    "NotificationFilter",
    "FetchResult",
    "NotificationGateway",
    "NotificationsClient",
    "freeze_payload",
    "to_record",
]
