"""Inbox feed routes: snapshots out, render feedback in."""
from __future__ import annotations

from typing import Any, Callable, Mapping

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..clients.notifications_client import AuthError, NotificationGateway, NotificationsClient, TransportError
from ..config import get_settings
from ..schemas.notifications import (
    FeedMountRequest,
    FeedMountResponse,
    FeedSnapshotResponse,
    FilterUpdate,
    NotificationGroupResponse,
    NotificationRecordResponse,
    PresenceReport,
    RequestStateResponse,
    ViewportReport,
    ViewportResponse,
)
from ..services.feed_controller import FeedSnapshot
from ..services.feed_registry import FeedHandle, feed_registry

router = APIRouter(prefix="/inbox", tags=["inbox"])

_security = HTTPBearer(auto_error=False)

GatewayFactory = Callable[[str | None], NotificationGateway]


def get_gateway_factory() -> GatewayFactory:
    return lambda access_token: NotificationsClient(access_token)


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


def _to_snapshot_response(snapshot: FeedSnapshot) -> FeedSnapshotResponse:
    return FeedSnapshotResponse(
        groups=[
            NotificationGroupResponse(
                conversation_id=group.conversation_id,
                unread=group.conversation_id in snapshot.unread,
                records=[
                    NotificationRecordResponse(
                        conversation_id=record.conversation_id,
                        event_id=record.event_id,
                        sender_id=record.sender_id,
                        timestamp_ms=record.timestamp_ms,
                        read=record.read,
                        payload=_thaw(record.payload),
                    )
                    for record in group.records
                ],
            )
            for group in snapshot.groups
        ],
        next_cursor=snapshot.next_cursor,
        request_state=RequestStateResponse(
            status=str(snapshot.request_state.status),
            reason=snapshot.request_state.reason,
        ),
        only_highlight=snapshot.only_highlight,
    )


def _require_feed(feed_id: str) -> FeedHandle:
    handle = feed_registry.get(feed_id)
    if handle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feed not found")
    return handle


@router.post("/feeds", response_model=FeedMountResponse, status_code=status.HTTP_201_CREATED)
async def mount_feed(
    payload: FeedMountRequest,
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
) -> FeedMountResponse:
    settings = get_settings()
    token = credentials.credentials if credentials else None
    handle = await feed_registry.mount(
        gateway_factory(token),
        only_highlight=payload.only_highlight,
        page_size=settings.feed_page_size,
        refresh_interval_ms=settings.feed_refresh_interval_ms,
    )
    return FeedMountResponse(feed_id=handle.feed_id, snapshot=_to_snapshot_response(handle.controller.snapshot()))


@router.get("/feeds/{feed_id}", response_model=FeedSnapshotResponse)
async def feed_snapshot(feed_id: str) -> FeedSnapshotResponse:
    handle = _require_feed(feed_id)
    return _to_snapshot_response(handle.controller.snapshot())


@router.post("/feeds/{feed_id}/viewport", response_model=ViewportResponse)
async def report_viewport(feed_id: str, payload: ViewportReport) -> ViewportResponse:
    handle = _require_feed(feed_id)
    return ViewportResponse(triggered=handle.scheduler.report_viewport(payload.last_index))


@router.post("/feeds/{feed_id}/presence", status_code=status.HTTP_204_NO_CONTENT)
async def report_presence(feed_id: str, payload: PresenceReport) -> None:
    handle = _require_feed(feed_id)
    handle.scheduler.report_presence(focused=payload.focused, at_top=payload.at_top)


@router.post("/feeds/{feed_id}/filter", response_model=FeedSnapshotResponse)
async def update_filter(feed_id: str, payload: FilterUpdate) -> FeedSnapshotResponse:
    handle = _require_feed(feed_id)
    pending = handle.controller.set_filter(payload.only_highlight)
    if pending is not None:
        await pending
    return _to_snapshot_response(handle.controller.snapshot())


@router.post("/feeds/{feed_id}/conversations/{conversation_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_conversation_read(feed_id: str, conversation_id: str) -> None:
    handle = _require_feed(feed_id)
    try:
        await handle.controller.mark_read(conversation_id)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except TransportError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.delete("/feeds/{feed_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unmount_feed(feed_id: str) -> None:
    if not await feed_registry.unmount(feed_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feed not found")


__all__ = ["router", "get_gateway_factory"]
