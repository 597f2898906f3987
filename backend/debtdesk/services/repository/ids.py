"""
Record id generation.

Ids are a fixed-width base36 millisecond timestamp, a base36 counter that
increases within the same millisecond, and a random hex suffix. They are
unique within a process even under rapid successive creates, and sort in
creation order. Ids minted for local writes carry the ``local_`` prefix so
they can never collide with remote ids when the two sources are merged.
"""

import secrets
import threading
import time
from typing import Callable

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int, width: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits)).rjust(width, "0")


class IdGenerator:
    """Monotonic, collision-resistant id source."""

    LOCAL_PREFIX = "local_"

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        random_bytes: int = 3,
    ) -> None:
        self._clock = clock
        self._random_bytes = random_bytes
        self._last_ms = 0
        self._counter = 0
        self._lock = threading.Lock()

    def next_id(self, local: bool = False) -> str:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            if now_ms <= self._last_ms:
                # same millisecond or clock stepped back
                now_ms = self._last_ms
                self._counter += 1
            else:
                self._last_ms = now_ms
                self._counter = 0
            token = (
                to_base36(now_ms, 9)
                + to_base36(self._counter, 4)
                + secrets.token_hex(self._random_bytes)
            )
        return f"{self.LOCAL_PREFIX}{token}" if local else token

    @classmethod
    def is_local(cls, record_id: str) -> bool:
        return record_id.startswith(cls.LOCAL_PREFIX)
