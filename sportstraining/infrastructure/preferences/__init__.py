"""
Key/value preference storage.

Backs the session cookie and display preferences. Includes an
in-memory store for local development and tests.
"""

from .store import (
    InMemoryPreferenceStore,
    JsonFilePreferenceStore,
    PreferenceStoreError,
    create_preference_store,
)

__all__ = [
    "InMemoryPreferenceStore",
    "JsonFilePreferenceStore",
    "PreferenceStoreError",
    "create_preference_store",
]
