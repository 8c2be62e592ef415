"""Snowflake-style IDs for listings, bids, orders and reconciliation markers.

IDs are time-ordered, zero-padded decimal strings, so ``ORDER BY id DESC`` doubles as
"newest first" and as a pagination cursor.

Layout (64 bits):
  - 41 bits: milliseconds since a custom epoch
  - 10 bits: node id (0-1023), one per service instance
  - 12 bits: per-millisecond sequence (0-4095)
"""

import os
import threading
import time

_EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
_NODE_BITS = 10
_SEQUENCE_BITS = 12
_MAX_NODE = (1 << _NODE_BITS) - 1
_SEQUENCE_MASK = (1 << _SEQUENCE_BITS) - 1
# 2**63 - 1 has 19 digits; fixed width keeps text order equal to numeric order
_ID_WIDTH = 19


class SnowflakeIdGenerator:
    def __init__(self, node_id: int = 0) -> None:
        if not (0 <= node_id <= _MAX_NODE):
            raise ValueError(f"node_id must be 0-{_MAX_NODE}, got {node_id}")
        self._node_id = node_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = self._now_ms()
            if now_ms < self._last_ms:
                # Clock moved backwards; keep ids monotonic by reusing the last tick.
                now_ms = self._last_ms
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & _SEQUENCE_MASK
                if self._sequence == 0:
                    now_ms = self._wait_until_after(now_ms)
            else:
                self._sequence = 0
            self._last_ms = now_ms
            value = (
                ((now_ms - _EPOCH_MS) << (_NODE_BITS + _SEQUENCE_BITS))
                | (self._node_id << _SEQUENCE_BITS)
                | self._sequence
            )
            return f"{value:0{_ID_WIDTH}d}"

    @staticmethod
    def _now_ms() -> int:
        return time.time_ns() // 1_000_000

    def _wait_until_after(self, last_ms: int) -> int:
        now_ms = self._now_ms()
        while now_ms <= last_ms:
            now_ms = self._now_ms()
        return now_ms


_default_generator = SnowflakeIdGenerator(node_id=int(os.environ.get("AM_NODE_ID", "0")))


def generate_id() -> str:
    """Generate a unique ID using the module-level default generator."""
    return _default_generator.next_id()
