"""Batch response correlation.

Batch members may finish in any order. The correlator keeps one ordered slot
table per incoming array and releases the aggregated reply array once, only
after every reply-expecting member has resolved.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable

from loguru import logger

from rpcstream.rpc.types import JSONRPCReply

BatchToken = int
SlotToken = int

EmitBatch = Callable[[list[JSONRPCReply]], None]


class BatchCorrelationError(LookupError):
    """Raised when a batch or slot token is unknown or already resolved."""


class BatchCorrelator:
    """Tracks in-flight batches for one server stream.

    Each record maps slot tokens to ``None`` (pending) or the finished reply.
    Dict insertion order is the order of the batch's output array.
    """

    def __init__(self, emit: EmitBatch) -> None:
        self._emit = emit
        self._tokens = itertools.count(1)
        self._batches: dict[BatchToken, dict[SlotToken, JSONRPCReply | None]] = {}

    def __contains__(self, batch: object) -> bool:
        return batch in self._batches

    @property
    def pending(self) -> int:
        """Number of batches still waiting for member replies."""
        return len(self._batches)

    def open_batch(self) -> BatchToken:
        batch = next(self._tokens)
        self._batches[batch] = {}
        logger.debug("rpc.batch.opened token={}", batch)
        return batch

    def reserve_slot(self, batch: BatchToken) -> SlotToken:
        slots = self._slots(batch)
        slot = next(self._tokens)
        slots[slot] = None
        return slot

    def discard_if_empty(self, batch: BatchToken) -> bool:
        """Drop a batch that reserved no slots (notifications only)."""
        if self._slots(batch):
            return False
        del self._batches[batch]
        logger.debug("rpc.batch.discarded token={}", batch)
        return True

    def resolve(self, batch: BatchToken, slot: SlotToken, reply: JSONRPCReply) -> list[JSONRPCReply] | None:
        """Store a member reply; emit and drop the batch once it is complete.

        Returns the emitted array, or None while slots remain pending.
        """
        slots = self._slots(batch)
        if slot not in slots:
            raise BatchCorrelationError(f"unknown slot {slot} in batch {batch}")
        if slots[slot] is not None:
            raise BatchCorrelationError(f"slot {slot} in batch {batch} already resolved")
        slots[slot] = reply

        ready: list[JSONRPCReply] = []
        for member in slots.values():
            if member is None:
                return None
            ready.append(member)

        del self._batches[batch]
        logger.debug("rpc.batch.completed token={} size={}", batch, len(ready))
        self._emit(ready)
        return ready

    def _slots(self, batch: BatchToken) -> dict[SlotToken, JSONRPCReply | None]:
        try:
            return self._batches[batch]
        except KeyError:
            raise BatchCorrelationError(f"unknown batch {batch}") from None


__all__ = [
    "BatchCorrelationError",
    "BatchCorrelator",
    "BatchToken",
    "EmitBatch",
    "SlotToken",
]
