import threading
import time

from .errors import NotReadyError
from .schema import Snapshot

class SnapshotStore:
    """
    Holds the active snapshot behind a single reference.

    Readers never lock: ``current()`` is one attribute load, and ``install()``
    replaces the reference in one assignment, so a reader sees either the old
    snapshot or the new one. The lock only serializes writers.
    """

    def __init__(self):
        self._write_lock = threading.Lock()
        self._snap: Snapshot | None = None
        self._generation = 0

    def current(self) -> Snapshot:
        snap = self._snap
        if snap is None:
            raise NotReadyError()
        return snap

    def peek(self) -> Snapshot | None:
        return self._snap

    @property
    def ready(self) -> bool:
        return self._snap is not None

    @property
    def generation(self) -> int:
        return self._generation

    def install(self, snap: Snapshot) -> Snapshot | None:
        """Swap in `snap` and return the snapshot it superseded."""
        with self._write_lock:
            previous = self._snap
            self._snap = snap
            self._generation += 1
            return previous

    def age_ms(self) -> int | None:
        s = self._snap
        if not s:
            return None
        return int(time.time() * 1000) - s.fetched_at
