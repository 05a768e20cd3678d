"""Human-readable display codes for orders.

Codes look like ``ORD-1KZ3Q9X2M0`` — a snowflake-style integer (timestamp,
machine id, per-millisecond sequence) rendered in base 36. They are unique
per process and sortable by creation time; the numeric order id remains the
primary key.
"""

import string
import threading
import time

_ALPHABET = string.digits + string.ascii_uppercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


class DisplayCodeGenerator:
    """Layout (63 bits): 41 ms timestamp | 10 machine id | 12 sequence."""

    _EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, prefix: str = "ORD", machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._prefix = prefix
        self._machine_id = machine_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_code(self) -> str:
        with self._lock:
            now = self._now_ms()
            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    while now <= self._last_ms:
                        now = self._now_ms()
            else:
                self._sequence = 0
            self._last_ms = now
            raw = (
                ((now - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )
        return f"{self._prefix}-{_base36(raw)}"

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)


_default_generator = DisplayCodeGenerator()


def generate_display_code() -> str:
    """Next order display code from the module-level generator."""
    return _default_generator.next_code()
