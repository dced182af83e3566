"""
Connection Registry - the authoritative set of live connection handles.

Membership is keyed by handle identity and kept in insertion order, so
snapshots iterate deterministically. The registry holds non-owning
references: removing a handle never closes it or its transport.

Thread Safety:
- add/remove/snapshot are mutually exclusive under one asyncio.Lock
- Critical sections never await I/O, so the lock is held only briefly
- snapshot() copies membership and releases the lock before returning,
  so a broadcast never holds the lock while delivering
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from shared.config.logging import get_logger

if TYPE_CHECKING:
    from rates_hub.components.connection.handle import ConnectionHandle

logger = get_logger(__name__)


class ConnectionRegistry:
    """
    Concurrency-safe membership set of ConnectionHandles.

    Guarantees:
    - Every member was added and not yet removed; no handle appears twice
    - A snapshot sees each add/remove either completely or not at all
    - Handles added after a snapshot completes are not in that snapshot
    """

    def __init__(self) -> None:
        # dict used as an insertion-ordered set
        self._members: dict["ConnectionHandle", None] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, handle: object) -> bool:
        return handle in self._members

    async def add(self, handle: "ConnectionHandle") -> None:
        """Register a newly accepted connection."""
        if handle is None:
            raise ValueError("handle must not be None")
        async with self._lock:
            self._members[handle] = None
            size = len(self._members)
        logger.debug("Handle registered", handle=repr(handle), size=size)

    async def remove(self, handle: "ConnectionHandle") -> bool:
        """
        Deregister a connection.

        Safe to call for a handle that is already absent or was never added.

        Returns:
            True if the handle was a member and has been removed, False otherwise.
        """
        async with self._lock:
            removed = self._members.pop(handle, False) is None
            size = len(self._members)
        if removed:
            logger.debug("Handle deregistered", handle=repr(handle), size=size)
        return removed

    async def snapshot(self) -> tuple["ConnectionHandle", ...]:
        """Return a point-in-time copy of the current members in insertion order."""
        async with self._lock:
            return tuple(self._members)
