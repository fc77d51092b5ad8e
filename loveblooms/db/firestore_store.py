# loveblooms/db/firestore_store.py
from __future__ import annotations

import os
import threading
from typing import Callable, Iterable, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore

from . import Doc, Filter
from ..settings import settings

_init_lock = threading.Lock()


def ensure_firestore() -> firestore.Client:
    """
    Return a Firestore client, initializing the Firebase app exactly once.

    - Safe to call many times (and from many threads).
    - Uses GOOGLE_APPLICATION_CREDENTIALS if present, or ADC otherwise.
    """
    with _init_lock:
        try:
            firebase_admin.get_app()
        except ValueError:
            sa_path = settings.google_application_credentials or os.environ.get(
                "GOOGLE_APPLICATION_CREDENTIALS"
            )
            options = {"projectId": settings.firebase_project_id}
            if sa_path and os.path.isfile(sa_path):
                firebase_admin.initialize_app(credentials.Certificate(sa_path), options)
            else:
                firebase_admin.initialize_app(options=options)
    return firestore.client()


def _with_id(snap) -> Doc:
    data = snap.to_dict() or {}
    data["id"] = snap.id
    return data


class FirestoreStore:
    def __init__(self, client: Optional[firestore.Client] = None):
        self._client = client

    @property
    def db(self) -> firestore.Client:
        if self._client is None:
            self._client = ensure_firestore()
        return self._client

    # ---------- reads ----------
    def get(self, collection: str, doc_id: str) -> Optional[Doc]:
        if not doc_id:
            return None
        snap = self.db.collection(collection).document(doc_id).get()
        if not snap.exists:
            return None
        return _with_id(snap)

    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        limit: Optional[int] = None,
    ) -> List[Doc]:
        q = self.db.collection(collection)
        for field, op, value in filters:
            q = q.where(field, op, value)
        if limit is not None:
            q = q.limit(limit)
        return [_with_id(snap) for snap in q.stream()]

    # ---------- writes ----------
    def add(self, collection: str, data: Doc, doc_id: Optional[str] = None) -> Doc:
        body = {k: v for k, v in data.items() if k != "id"}
        col = self.db.collection(collection)
        ref = col.document(doc_id) if doc_id else col.document()
        ref.set(body)
        out = dict(body)
        out["id"] = ref.id
        return out

    def set(self, collection: str, doc_id: str, data: Doc, merge: bool = False) -> Doc:
        body = {k: v for k, v in data.items() if k != "id"}
        ref = self.db.collection(collection).document(doc_id)
        ref.set(body, merge=merge)
        return _with_id(ref.get())

    def delete(self, collection: str, doc_id: str) -> None:
        self.db.collection(collection).document(doc_id).delete()

    def transact(
        self,
        collection: str,
        doc_id: str,
        fn: Callable[[Optional[Doc]], Doc],
    ) -> Doc:
        """
        Atomic read-modify-write. Firestore retries the function when another
        transaction touched the document first, so fn must be free of side
        effects; an exception raised by fn aborts without writing.
        """
        ref = self.db.collection(collection).document(doc_id)

        @firestore.transactional
        def _run(txn):
            snap = ref.get(transaction=txn)
            current = _with_id(snap) if snap.exists else None
            updated = fn(current)
            body = {k: v for k, v in updated.items() if k != "id"}
            txn.set(ref, body)
            out = dict(body)
            out["id"] = doc_id
            return out

        return _run(self.db.transaction())
