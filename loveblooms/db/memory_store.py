# loveblooms/db/memory_store.py
from __future__ import annotations

import copy
import operator
import threading
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from . import Doc, Filter

_OPS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda a, b: a in b,
    "array_contains": lambda a, b: isinstance(a, list) and b in a,
}


class MemoryStore:
    """
    Process-local document store with the same contract as FirestoreStore.
    Collections are dicts of id -> document; every read and write copies,
    so callers never share state with the store.
    transact() runs under one lock, which gives the same all-or-nothing
    read-modify-write a Firestore transaction gives.
    """
    def __init__(self):
        self._data: Dict[str, Dict[str, Doc]] = {}
        self._lock = threading.RLock()

    def _col(self, collection: str) -> Dict[str, Doc]:
        return self._data.setdefault(collection, {})

    @staticmethod
    def _out(doc_id: str, data: Doc) -> Doc:
        out = copy.deepcopy(data)
        out["id"] = doc_id
        return out

    # ---------- reads ----------
    def get(self, collection: str, doc_id: str) -> Optional[Doc]:
        if not doc_id:
            return None
        with self._lock:
            data = self._col(collection).get(doc_id)
            return self._out(doc_id, data) if data is not None else None

    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        limit: Optional[int] = None,
    ) -> List[Doc]:
        filters = list(filters)
        for _, op, _ in filters:
            if op not in _OPS:
                raise ValueError(f"unsupported filter operator {op!r}")
        out: List[Doc] = []
        with self._lock:
            for doc_id, data in self._col(collection).items():
                if all(
                    field in data and _OPS[op](data[field], value)
                    for field, op, value in filters
                ):
                    out.append(self._out(doc_id, data))
                    if limit is not None and len(out) >= limit:
                        break
        return out

    # ---------- writes ----------
    def add(self, collection: str, data: Doc, doc_id: Optional[str] = None) -> Doc:
        doc_id = doc_id or uuid.uuid4().hex[:20]
        body = {k: v for k, v in data.items() if k != "id"}
        with self._lock:
            self._col(collection)[doc_id] = copy.deepcopy(body)
        return self._out(doc_id, body)

    def set(self, collection: str, doc_id: str, data: Doc, merge: bool = False) -> Doc:
        body = {k: v for k, v in data.items() if k != "id"}
        with self._lock:
            col = self._col(collection)
            if merge and doc_id in col:
                merged = col[doc_id]
                merged.update(copy.deepcopy(body))
            else:
                col[doc_id] = copy.deepcopy(body)
            return self._out(doc_id, col[doc_id])

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._col(collection).pop(doc_id, None)

    def transact(
        self,
        collection: str,
        doc_id: str,
        fn: Callable[[Optional[Doc]], Doc],
    ) -> Doc:
        with self._lock:
            current = self._col(collection).get(doc_id)
            snapshot = self._out(doc_id, current) if current is not None else None
            updated = fn(snapshot)
            body = {k: v for k, v in updated.items() if k != "id"}
            self._col(collection)[doc_id] = copy.deepcopy(body)
            return self._out(doc_id, body)
