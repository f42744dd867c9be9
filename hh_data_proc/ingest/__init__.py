"""Columnar input stores."""

from hh_data_proc.ingest.stores import (
    EventStore,
    RootEventStore,
    ParquetEventStore,
    open_event_store,
)

__all__ = [
    "EventStore",
    "RootEventStore",
    "ParquetEventStore",
    "open_event_store",
]
