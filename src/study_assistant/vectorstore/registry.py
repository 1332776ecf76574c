"""Process-wide slot holding the index of the currently loaded document."""
from __future__ import annotations

import threading
from typing import List

from study_assistant.errors import NoDocumentLoaded
from study_assistant.telemetry import emit_index_event

from .memory_store import DEFAULT_TOP_K, DocumentIndex, RetrievedChunk


class IndexRegistry:
    """Holds at most one :class:`DocumentIndex` and swaps it atomically.

    Readers take a :meth:`snapshot` once per request and keep using that
    immutable index even if an upload installs a newer one meanwhile.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: DocumentIndex | None = None
        self._version = 0

    def install(self, index: DocumentIndex) -> DocumentIndex:
        with self._lock:
            self._version += 1
            stamped = index.with_version(self._version)
            previous = self._current
            self._current = stamped
        emit_index_event(
            "index.install",
            version=stamped.version,
            file_name=stamped.document.filename,
            chunks=len(stamped.chunks),
            dimension=stamped.dimension,
        )
        if previous is not None:
            emit_index_event(
                "index.replace",
                version=previous.version,
                file_name=previous.document.filename,
                chunks=len(previous.chunks),
            )
        return stamped

    def snapshot(self) -> DocumentIndex:
        current = self._current
        if current is None:
            raise NoDocumentLoaded()
        return current

    def peek(self) -> DocumentIndex | None:
        return self._current

    def retrieve(self, query: str, k: int = DEFAULT_TOP_K) -> List[RetrievedChunk]:
        return self.snapshot().retrieve(query, k)

    def clear(self) -> None:
        with self._lock:
            self._current = None

    @property
    def version(self) -> int:
        return self._version


_registry = IndexRegistry()


def get_index_registry() -> IndexRegistry:
    """Return the shared :class:`IndexRegistry` instance."""

    return _registry
