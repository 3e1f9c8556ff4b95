"""Persistence of build history."""

from warnings_tracker.storage.json_store import JsonHistoryStore

__all__ = ["JsonHistoryStore"]
