"""Per-key single-writer locks for stock-guarded mutations.

Cart mutations are read-check-write sequences: read stock, compare against
the requested quantity, write the line item. Two requests for the same cart
and item must not interleave those steps, or both can pass the check and
overshoot stock.

KeyedLock serializes writers per key inside one process. Services also
take select_for_update() row locks inside transaction.atomic(), which
carries the same guarantee across processes on databases with row locking.

Lock order is always cart key, then inventory key.
"""

import threading
from contextlib import contextmanager


def cart_key(owner_email: str) -> str:
    return f"cart:{owner_email}"


def inventory_key(item_id) -> str:
    return f"inventory:{item_id}"


class KeyedLock:
    """Mutual exclusion per string key.

    Locks are created on first use and dropped once no thread holds or
    waits for them, so the registry does not grow with every owner seen.

    Usage:
        locks = KeyedLock()
        with locks.hold(cart_key(owner)):
            ...
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: dict[str, list] = {}

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1

        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

    def __len__(self):
        with self._guard:
            return len(self._entries)


# Shared by every service instance that is not handed its own registry.
# Two CartStore objects in one process must contend on the same locks.
process_locks = KeyedLock()
