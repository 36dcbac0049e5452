"""
Memoizes synthesized buffers by (sound name, pack id).
get_or_create is single-flight: concurrent callers for a missing key wait on
one factory call and all receive the same buffer.
"""
import threading
from typing import Callable, Dict, Optional, Tuple

from retrovox.core.types import SampleBuffer

CacheKey = Tuple[str, str]


class SoundCache:
    def __init__(self):
        self._entries: Dict[CacheKey, SampleBuffer] = {}
        self._pending: Dict[CacheKey, threading.Lock] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Optional[SampleBuffer]:
        with self._lock:
            return self._entries.get(key)

    def get_or_create(self, key: CacheKey, factory: Callable[[], SampleBuffer]) -> SampleBuffer:
        with self._lock:
            buffer = self._entries.get(key)
            if buffer is not None:
                return buffer
            key_lock = self._pending.setdefault(key, threading.Lock())

        with key_lock:
            # another caller may have filled it while we waited
            with self._lock:
                buffer = self._entries.get(key)
            if buffer is not None:
                return buffer

            buffer = factory()
            with self._lock:
                self._entries[key] = buffer
                self._pending.pop(key, None)
            return buffer

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._entries
