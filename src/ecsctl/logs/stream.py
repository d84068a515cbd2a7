"""Cancellable log tailing for one task container.

A background producer task pages through the container's log stream and
pushes records onto an unbounded queue; the caller drains it with
``async for``. In bounded mode the producer stops at the page the API
flags as final. In following mode it never stops on its own: after an
empty page it waits ``poll_interval`` and asks again, until the caller
closes the stream or sets the cancellation event.

A failed fetch ends the stream; the consumer receives the error as the
terminal event instead of ``StopAsyncIteration``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from operator import attrgetter
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

from ..exceptions import NotFoundError, UnsupportedLogDriverError, ValidationError
from ..remote.api import ControlPlaneAPI
from ..remote.containers import fetch_task, resolve_container
from ..shared import AWSLOGS_DRIVER, LogRecord

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_SINCE",
    "LogDestination",
    "LogTailStream",
    "StreamPhase",
    "TailMode",
    "resolve_log_destination",
    "tail_logs",
]

logger = logging.getLogger(__name__)

DEFAULT_SINCE = timedelta(minutes=10)
DEFAULT_POLL_INTERVAL = 1.0


class TailMode(str, Enum):
    BOUNDED = "bounded"
    FOLLOWING = "following"


class StreamPhase(str, Enum):
    RESOLVING = "resolving"
    FETCHING = "fetching"
    WAITING = "waiting"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class LogDestination:
    task_id: str
    container: str
    group: str
    stream: str


@dataclass(frozen=True, slots=True)
class _StreamEnd:
    error: Optional[BaseException] = None


async def resolve_log_destination(
    api: ControlPlaneAPI, task_id: str, container: Optional[str] = None
) -> LogDestination:
    """Find the awslogs group/stream a task container writes to."""
    task = await fetch_task(api, task_id)
    name = resolve_container(task, container)
    configs = await api.describe_task_log_config(task.arn)
    config = next((c for c in configs if c.container == name), None)
    if config is None:
        raise NotFoundError(f"container {name} not found in task definition")
    if config.driver != AWSLOGS_DRIVER:
        raise UnsupportedLogDriverError(name, config.driver)
    if not config.group:
        raise ValidationError(f"container {name} has no awslogs-group configured")
    return LogDestination(
        task_id=task.task_id,
        container=name,
        group=config.group,
        stream=config.stream_for(task.task_id),
    )


class LogTailStream:
    """Async iterator of ``LogRecord`` for one task container.

    Use as ``async with LogTailStream(...) as stream: async for r in stream``.
    """

    def __init__(
        self,
        api: ControlPlaneAPI,
        task_id: str,
        *,
        container: Optional[str] = None,
        since: timedelta = DEFAULT_SINCE,
        follow: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        if since < timedelta(0):
            raise ValidationError("since must not be negative")
        self._api = api
        self._task_id = task_id
        self._container = container
        self._since = since
        self._poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep
        self._cancel_event = cancel_event
        self.mode = TailMode.FOLLOWING if follow else TailMode.BOUNDED
        self.phase = StreamPhase.RESOLVING
        self.destination: Optional[LogDestination] = None
        self.start_time_millis: Optional[int] = None
        self.waits = 0
        self._queue: "asyncio.Queue[Union[LogRecord, _StreamEnd]]" = asyncio.Queue()
        self._producer: Optional[asyncio.Task] = None
        self._watcher: Optional[asyncio.Task] = None
        self._finished = False

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    async def open(self) -> "LogTailStream":
        if self._producer is not None:
            return self
        self.destination = await resolve_log_destination(
            self._api, self._task_id, self._container
        )
        self.start_time_millis = int(
            (self._clock() - self._since.total_seconds()) * 1000
        )
        logger.info(
            "log_tail_open task=%s container=%s group=%s stream=%s mode=%s",
            self.destination.task_id,
            self.destination.container,
            self.destination.group,
            self.destination.stream,
            self.mode.value,
        )
        self._producer = asyncio.create_task(self._produce())
        if self._cancel_event is not None:
            self._watcher = asyncio.create_task(self._watch_cancel())
        return self

    async def aclose(self) -> None:
        pending = [t for t in (self._producer, self._watcher) if t and not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self.phase = StreamPhase.CLOSED

    async def __aenter__(self) -> "LogTailStream":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # Consumption
    # ------------------------------------------------------------------ #
    def __aiter__(self) -> "LogTailStream":
        return self

    async def __anext__(self) -> LogRecord:
        if self._producer is None:
            raise RuntimeError("log stream is not open")
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if isinstance(item, _StreamEnd):
            self._finished = True
            if item.error is not None:
                raise item.error
            raise StopAsyncIteration
        return item

    # ------------------------------------------------------------------ #
    # Producer
    # ------------------------------------------------------------------ #
    async def _produce(self) -> None:
        error: Optional[BaseException] = None
        try:
            await self._fetch_loop()
        except Exception as exc:
            logger.debug("log_tail_failed task=%s error=%s", self._task_id, exc)
            error = exc
        finally:
            self.phase = StreamPhase.CLOSED
            self._queue.put_nowait(_StreamEnd(error))

    async def _fetch_loop(self) -> None:
        assert self.destination is not None and self.start_time_millis is not None
        token: Optional[str] = None
        while True:
            self.phase = StreamPhase.FETCHING
            page = await self._api.fetch_log_records(
                self.destination.group,
                self.destination.stream,
                self.start_time_millis,
                token,
            )
            for record in sorted(page.records, key=attrgetter("timestamp_millis")):
                self._queue.put_nowait(record)
            if page.next_token:
                token = page.next_token

            if self.mode is TailMode.BOUNDED:
                if page.is_last_page:
                    return
                continue

            if not page.records:
                self.phase = StreamPhase.WAITING
                self.waits += 1
                await self._sleep(self._poll_interval)

    async def _watch_cancel(self) -> None:
        assert self._cancel_event is not None
        await self._cancel_event.wait()
        if self._producer is not None and not self._producer.done():
            logger.debug("log_tail_cancelled task=%s", self._task_id)
            self._producer.cancel()


async def tail_logs(
    api: ControlPlaneAPI, task_id: str, **options
) -> AsyncIterator[LogRecord]:
    """Yield records from a ``LogTailStream``, closing it on exit."""
    async with LogTailStream(api, task_id, **options) as stream:
        async for record in stream:
            yield record
