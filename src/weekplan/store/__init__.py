"""External record store interface and persistence of template rows."""

from weekplan.store.record_store import (
    BatchResult,
    InMemoryRecordStore,
    RecordStore,
    StoreError,
)
from weekplan.store.sync import (
    PersistenceError,
    SyncResult,
    TemplateSync,
    fetch_schedule_range,
    write_schedule_entries,
)

__all__ = [
    "BatchResult",
    "InMemoryRecordStore",
    "PersistenceError",
    "RecordStore",
    "StoreError",
    "SyncResult",
    "TemplateSync",
    "fetch_schedule_range",
    "write_schedule_entries",
]
