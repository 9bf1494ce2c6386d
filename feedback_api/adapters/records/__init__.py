"""Persistence adapters for questions and responses."""

from feedback_api.adapters.records.base import AbstractRecordStore
from feedback_api.adapters.records.factory import create_record_store
from feedback_api.adapters.records.in_memory import InMemoryRecordStore
from feedback_api.adapters.records.postgrest import PostgrestRecordStore

__all__ = [
    "AbstractRecordStore",
    "InMemoryRecordStore",
    "PostgrestRecordStore",
    "create_record_store",
]
