"""Two-phase list/describe collection.

The control plane lists identifiers a page at a time and hydrates them
through separate describe calls with their own batch limit. The
collector hides both limits behind one call that returns every record of
a kind in first-seen order.

``PaginationState`` holds the cursor and the pending batch and decides
the next phase; ``PaginatedCollector`` only performs the calls it asks
for. Calls are strictly sequential since each cursor comes from the
previous response.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Deque, Dict, Iterable, List, Optional, Sequence

from .remote.api import DESCRIBE_BATCH_LIMITS, LIST_PAGE_LIMITS, ControlPlaneAPI
from .shared import DescribedResource, ResourceKind, ResourcePage

__all__ = [
    "CollectorPhase",
    "PaginatedCollector",
    "PaginationState",
    "collect_resources",
]

logger = logging.getLogger(__name__)


class CollectorPhase(str, Enum):
    LIST = "list"
    DESCRIBE = "describe"
    DONE = "done"


class PaginationState:
    """Cursor plus pending identifiers for one collection."""

    def __init__(self, batch_size: int) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.batch_size = batch_size
        self.cursor: Optional[str] = None
        self.pending: Deque[str] = deque()
        self.phase = CollectorPhase.LIST
        self.pages_seen = 0

    @classmethod
    def for_identifiers(
        cls, identifiers: Iterable[str], batch_size: int
    ) -> "PaginationState":
        """State that skips listing and only describes ``identifiers``."""
        state = cls(batch_size)
        state.pending.extend(identifiers)
        state._advance()
        return state

    def accept_page(self, page: ResourcePage) -> None:
        if self.phase is not CollectorPhase.LIST:
            raise RuntimeError(f"unexpected list page in phase {self.phase.value}")
        self.pages_seen += 1
        self.pending.extend(page.identifiers)
        # An empty page ends the listing even if a cursor came back with it.
        self.cursor = page.cursor if page.identifiers else None
        self._advance()

    def next_batch(self) -> List[str]:
        if self.phase is not CollectorPhase.DESCRIBE:
            raise RuntimeError(f"no batch pending in phase {self.phase.value}")
        count = min(self.batch_size, len(self.pending))
        return [self.pending.popleft() for _ in range(count)]

    def batch_done(self) -> None:
        self._advance()

    def _advance(self) -> None:
        if self.pending:
            self.phase = CollectorPhase.DESCRIBE
        elif self.cursor:
            self.phase = CollectorPhase.LIST
        else:
            self.phase = CollectorPhase.DONE


def merge_batch(
    merged: Dict[str, DescribedResource],
    batch: Sequence[str],
    records: Iterable[DescribedResource],
) -> int:
    """Add ``records`` to ``merged`` in ``batch`` order; return drop count.

    Identifiers missing from the response vanished between list and
    describe and are skipped. Records already merged are kept as first
    seen.
    """
    by_key: Dict[str, DescribedResource] = {}
    for record in records:
        for key in record.lookup_keys():
            by_key.setdefault(key, record)

    dropped = 0
    for identifier in batch:
        record = by_key.get(identifier)
        if record is None:
            dropped += 1
            continue
        merged.setdefault(record.identifier, record)
    return dropped


class PaginatedCollector:
    """Collects every described resource of one kind."""

    def __init__(
        self,
        api: ControlPlaneAPI,
        kind: ResourceKind,
        *,
        page_size: Optional[int] = None,
        describe_batch_size: Optional[int] = None,
    ) -> None:
        self.api = api
        self.kind = ResourceKind(kind)
        self.page_size = min(
            page_size or LIST_PAGE_LIMITS[self.kind], LIST_PAGE_LIMITS[self.kind]
        )
        self.describe_batch_size = min(
            describe_batch_size or DESCRIBE_BATCH_LIMITS[self.kind],
            DESCRIBE_BATCH_LIMITS[self.kind],
        )

    async def collect(self) -> List[DescribedResource]:
        """List and describe every resource; any failed call aborts."""
        return await self._drive(PaginationState(self.describe_batch_size))

    async def describe_selected(
        self, identifiers: Sequence[str]
    ) -> List[DescribedResource]:
        """Describe explicitly named resources (ARNs or short names)."""
        unique = list(dict.fromkeys(i for i in identifiers if i))
        return await self._drive(
            PaginationState.for_identifiers(unique, self.describe_batch_size)
        )

    async def _drive(self, state: PaginationState) -> List[DescribedResource]:
        merged: Dict[str, DescribedResource] = {}
        dropped = 0
        while state.phase is not CollectorPhase.DONE:
            if state.phase is CollectorPhase.LIST:
                page = await self.api.list_identifiers(
                    self.kind, state.cursor, self.page_size
                )
                state.accept_page(page)
            else:
                batch = state.next_batch()
                records = await self.api.describe(self.kind, batch)
                dropped += merge_batch(merged, batch, records)
                state.batch_done()

        logger.debug(
            "collected kind=%s pages=%d records=%d dropped=%d",
            self.kind.value,
            state.pages_seen,
            len(merged),
            dropped,
        )
        return list(merged.values())


async def collect_resources(
    api: ControlPlaneAPI, kind: ResourceKind
) -> List[DescribedResource]:
    return await PaginatedCollector(api, kind).collect()
