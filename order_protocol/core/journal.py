import json
import threading
from typing import Any, Dict, Iterator, Optional
from .types import JournalEntry
from .clock import Clock

class FillJournal:
    """
    Durable log of order tracker events: ORDER_ADDED, FILL, CANCEL, INVALIDATE.

    One JSON object per line. FILL entries carry the running filled total, so
    replaying the file through OrderStatusTracker.restore rebuilds every
    order's state without re-checking the fills.
    """
    def __init__(self, filepath: str = "order_journal.jsonl"):
        self.filepath = filepath
        # Each event is flushed when its newline is written
        self._file = open(self.filepath, "a", buffering=1)
        # Fills on different orders hold different locks
        self._write_lock = threading.Lock()

    def __enter__(self) -> "FillJournal":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def append(self, entry: JournalEntry):
        line = json.dumps(entry.model_dump(mode="json")) + "\n"
        with self._write_lock:
            self._file.write(line)

    def record(self, event_type: str, data: Dict[str, Any]):
        """Stamps an event with the current epoch microseconds and appends it."""
        self.append(JournalEntry(event_type=event_type, timestamp=Clock.now_epoch_us(), data=data))

    def close(self):
        self._file.close()

    @staticmethod
    def replay(filepath: str, order_hash: Optional[str] = None) -> Iterator[JournalEntry]:
        """
        Yields the tracker events in write order, optionally only those of one order hash.
        """
        wanted = order_hash.lower() if order_hash is not None else None
        with open(filepath, "r") as f:
            for line in f:
                if not line.strip():
                    continue
                entry = JournalEntry.model_validate_json(line)
                if wanted is None or entry.data.get("order_hash", "").lower() == wanted:
                    yield entry
