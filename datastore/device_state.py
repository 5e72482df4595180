from __future__ import annotations

from collections import OrderedDict
from datetime import datetime
from threading import RLock
from typing import Iterator, Optional, Tuple

from app.schemas import MessageType
from models.records import DeviceState

StateKey = Tuple[str, MessageType]


class DeviceStateStore:
    """In-memory last-emission state per (device_id, message_type).

    Entries live for the lifetime of the store. When ``max_devices`` is set
    the least recently updated key is evicted once the limit is exceeded.
    """

    def __init__(self, max_devices: Optional[int] = None) -> None:
        if max_devices is not None and max_devices <= 0:
            raise ValueError("max_devices must be a positive integer.")
        self.max_devices = max_devices
        self._items: "OrderedDict[StateKey, DeviceState]" = OrderedDict()
        self._lock = RLock()

    @property
    def lock(self) -> RLock:
        """Lock held by callers that read and then update the same key."""
        return self._lock

    def get(self, device_id: str, message_type: MessageType) -> Optional[DeviceState]:
        with self._lock:
            state = self._items.get((device_id, message_type))
            if state is None:
                return None
            return DeviceState(
                last_emitted_at=state.last_emitted_at,
                last_sequence_number=state.last_sequence_number,
            )

    def record(
        self,
        device_id: str,
        message_type: MessageType,
        emitted_at: datetime,
        sequence_number: int,
    ) -> None:
        key = (device_id, message_type)
        with self._lock:
            self._items[key] = DeviceState(
                last_emitted_at=emitted_at,
                last_sequence_number=sequence_number,
            )
            self._items.move_to_end(key)
            if self.max_devices is not None:
                while len(self._items) > self.max_devices:
                    self._items.popitem(last=False)

    def items(self) -> Iterator[Tuple[StateKey, DeviceState]]:
        """Snapshot of all entries, oldest update first."""
        with self._lock:
            snapshot = list(self._items.items())
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items
