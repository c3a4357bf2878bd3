"""Shared fakes for the inbox feed tests: a virtual clock and a scripted gateway."""
from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable

import pytest

from app.clients.notifications_client import FetchResult, NotificationFilter, freeze_payload
from app.models import NotificationRecord


async def settle(rounds: int = 20) -> None:
    """Let every ready task run until the loop goes quiet."""

    for _ in range(rounds):
        await asyncio.sleep(0)


class VirtualClock:
    """Clock whose sleepers only wake when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._sleepers: list[tuple[float, int, asyncio.Future[None]]] = []
        self._seq = itertools.count()

    async def sleep(self, seconds: float) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (self.now + seconds, next(self._seq), future))
        await future

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await settle()
        while self._sleepers and self._sleepers[0][0] <= target:
            deadline, _, future = heapq.heappop(self._sleepers)
            self.now = deadline
            if not future.done():
                future.set_result(None)
            await settle()
        self.now = target
        await settle()


class FakeGateway:
    """Scripted gateway keyed by (cursor, filter).

    A key scripted with several results hands them out in order and then keeps
    returning the last one. ``hold`` makes the next call for a cursor wait on
    an event so tests can choose completion order.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str | None, int, NotificationFilter | None]] = []
        self.mark_read_calls: list[str] = []
        self.mark_read_error: Exception | None = None
        self.on_fetch: Callable[[str | None], None] | None = None
        self._results: dict[tuple[str | None, NotificationFilter | None], list[FetchResult | Exception]] = {}
        self._holds: dict[str | None, list[asyncio.Event]] = {}

    def script(
        self,
        cursor: str | None,
        records: list[NotificationRecord],
        next_cursor: str | None = None,
        *,
        only: NotificationFilter | None = None,
    ) -> None:
        self._results.setdefault((cursor, only), []).append(FetchResult(tuple(records), next_cursor))

    def fail(self, cursor: str | None, exc: Exception, *, only: NotificationFilter | None = None) -> None:
        self._results.setdefault((cursor, only), []).append(exc)

    def hold(self, cursor: str | None) -> asyncio.Event:
        gate = asyncio.Event()
        self._holds.setdefault(cursor, []).append(gate)
        return gate

    async def fetch_page(
        self,
        cursor: str | None,
        page_size: int,
        only: NotificationFilter | None = None,
    ) -> FetchResult:
        self.calls.append((cursor, page_size, only))
        if self.on_fetch is not None:
            self.on_fetch(cursor)
        gates = self._holds.get(cursor)
        if gates:
            await gates.pop(0).wait()
        queue = self._results[(cursor, only)]
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def mark_read(self, conversation_id: str) -> None:
        self.mark_read_calls.append(conversation_id)
        if self.mark_read_error is not None:
            raise self.mark_read_error


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_record() -> Callable[..., NotificationRecord]:
    counter = itertools.count(1)

    def _factory(conversation_id: str, *, read: bool = False, sender_id: str = "@alice:example.org") -> NotificationRecord:
        index = next(counter)
        return NotificationRecord(
            conversation_id=conversation_id,
            event_id=f"$event{index}",
            sender_id=sender_id,
            timestamp_ms=1_700_000_000_000 - index,
            payload=freeze_payload({"type": "m.room.message", "content": {"body": f"message {index}", "mentions": ["@bob:example.org"]}}),
            read=read,
        )

    return _factory
