"""
Document store interface and in-memory backend.

The export pipeline reads and writes a Firestore-shaped hierarchy of
documents addressed by slash-separated paths, where even segments are
collections and odd segments are document ids:

    transcript/{user}/timestamps/{id}
    users/{user}
    integratedautomations/{user}/automations/{automationId}/steps/{stepId}
    slack_workspaces/{teamId}

Any backend exposing ``get`` / ``set`` / ``list`` over such paths can serve
the pipeline.
"""

from __future__ import annotations

import copy
from typing import Any, Protocol


def split_path(path: str) -> tuple[str, str]:
    """Split a document path into (collection path, document id)."""
    path = path.strip('/')
    if '/' not in path:
        raise ValueError(f"'{path}' is not a document path")
    collection, doc_id = path.rsplit('/', 1)
    if not doc_id:
        raise ValueError(f"'{path}' is not a document path")
    return collection, doc_id


def deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Merge ``updates`` into a copy of ``base``, recursing into nested maps."""
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class DocumentStore(Protocol):
    """Minimal document repository used by the export pipeline."""

    async def get(self, path: str) -> dict[str, Any] | None:
        """Return the document at ``path`` or None if it does not exist."""
        ...

    async def set(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        """Write the document at ``path``, merging nested maps when ``merge``."""
        ...

    async def list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        """Return ``(doc_id, data)`` pairs of a collection in stored order."""
        ...


class InMemoryDocumentStore:
    """
    Dict-backed DocumentStore.

    Documents are returned as deep copies so callers can never mutate stored
    state by accident. Listing preserves insertion order.
    """

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None):
        self._documents: dict[str, dict[str, Any]] = {}
        for path, data in (documents or {}).items():
            split_path(path)
            self._documents[path.strip('/')] = copy.deepcopy(data)

    async def get(self, path: str) -> dict[str, Any] | None:
        data = self._documents.get(path.strip('/'))
        return copy.deepcopy(data) if data is not None else None

    async def set(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        split_path(path)
        key = path.strip('/')
        existing = self._documents.get(key)
        if merge and existing is not None:
            self._documents[key] = deep_merge(existing, data)
        else:
            self._documents[key] = copy.deepcopy(data)

    async def list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        prefix = collection.strip('/')
        results = []
        for path, data in self._documents.items():
            parent, doc_id = split_path(path)
            if parent == prefix:
                results.append((doc_id, copy.deepcopy(data)))
        return results

    async def verify_connectivity(self) -> bool:
        return True
