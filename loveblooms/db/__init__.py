"""Document store selection: Firestore in production, in-process memory otherwise."""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from ..settings import settings

Doc = Dict[str, Any]
Filter = Tuple[str, str, Any]


class DocumentStore(Protocol):
    def get(self, collection: str, doc_id: str) -> Optional[Doc]: ...

    def add(self, collection: str, data: Doc, doc_id: Optional[str] = None) -> Doc: ...

    def set(self, collection: str, doc_id: str, data: Doc, merge: bool = False) -> Doc: ...

    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        limit: Optional[int] = None,
    ) -> List[Doc]: ...

    def delete(self, collection: str, doc_id: str) -> None: ...

    def transact(
        self,
        collection: str,
        doc_id: str,
        fn: Callable[[Optional[Doc]], Doc],
    ) -> Doc: ...


_store: Optional[DocumentStore] = None


def get_store() -> DocumentStore:
    """Return (and lazily create) the configured document store."""
    global _store
    if _store is None:
        backend = (settings.store_backend or "firestore").strip().lower()
        if backend == "memory":
            from .memory_store import MemoryStore
            _store = MemoryStore()
        elif backend == "firestore":
            from .firestore_store import FirestoreStore
            _store = FirestoreStore()
        else:
            raise RuntimeError(f"Unknown STORE_BACKEND {backend!r} (expected firestore or memory)")
    return _store


def reset_store() -> None:
    """Drop the cached store (tests, or after changing settings)."""
    global _store
    _store = None
