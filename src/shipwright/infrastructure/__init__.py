"""
shipwright.infrastructure - Persistence Layer
===============================================

Storage for infrastructure, build and deploy records.

Components:
    - RecordStore (ABC):    Abstract interface for record persistence
    - InMemoryRecordStore:  In-memory implementation for development/testing
    - FileRecordStore:      JSON-on-disk implementation

Usage:
    from shipwright.infrastructure import InMemoryRecordStore
"""

from shipwright.infrastructure.record_store import (
    FileRecordStore,
    InMemoryRecordStore,
    RecordStore,
)

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "FileRecordStore",
]
