"""JSON-file-backed implementation of DocumentStore.

Each collection is one JSON file (``<collection>.json``) holding an object
that maps document ids to their fields. Datetimes are written as ISO-8601
text.

Every read-modify-write of a collection file happens under a lock shared by
all stores in the process that point at the same file, so ``increment`` is
atomic with respect to other threads. Separate processes are not
coordinated.
"""

from __future__ import annotations

import json
import os
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from storefront.domain.exceptions import (
    DocumentNotFoundError,
    PreconditionFailedError,
    StoreError,
)
from storefront.domain.repository.document_store import (
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    JournalEntry,
)

_locks: dict[Path, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _locks_guard:
        if path not in _locks:
            _locks[path] = threading.RLock()
        return _locks[path]


def _counter(value: Any, where: str) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError) as exc:
        raise StoreError(f"{where} is not an integer: {value!r}") from exc


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonDocumentStore(DocumentStore):

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir.resolve()

    # --- DocumentStore interface ----------------------------------------------

    def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        with self._locked(collection):
            docs = self._load(collection)
        if doc_id not in docs:
            return DocumentSnapshot.missing(doc_id)
        return DocumentSnapshot(id=doc_id, fields=docs[doc_id])

    def add(self, collection: str, fields: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        with self._locked(collection):
            docs = self._load(collection)
            docs[doc_id] = dict(fields)
            self._persist(collection, docs)
        return doc_id

    def set(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        with self._locked(collection):
            docs = self._load(collection)
            docs[doc_id] = dict(fields)
            self._persist(collection, docs)

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        with self._locked(collection):
            docs = self._load(collection)
            if doc_id not in docs:
                raise DocumentNotFoundError(collection, doc_id)
            docs[doc_id].update(fields)
            self._persist(collection, docs)

    def query(self, collection: str, *filters: FieldFilter) -> list[DocumentSnapshot]:
        with self._locked(collection):
            docs = self._load(collection)
        return [
            DocumentSnapshot(id=doc_id, fields=fields)
            for doc_id, fields in docs.items()
            if all(f.matches(fields) for f in filters)
        ]

    def increment(
        self,
        collection: str,
        doc_id: str,
        field_name: str,
        delta: int,
        *,
        floor: int | None = None,
        expect: int | None = None,
        merge: dict[str, Any] | None = None,
        journal: JournalEntry | None = None,
    ) -> int:
        # The journal lock is always taken after the target's. Both files
        # are read before either is written, and the target is rolled back
        # if the journal cannot be written, so a raised error never leaves
        # a counter change behind.
        with self._locked(collection):
            docs = self._load(collection)
            if doc_id not in docs:
                raise DocumentNotFoundError(collection, doc_id)

            where = f"{collection}/{doc_id}.{field_name}"
            current = _counter(docs[doc_id].get(field_name), where)
            if expect is not None and current != expect:
                raise PreconditionFailedError(
                    f"{where} is {current}, expected {expect}", current
                )
            new_value = current + delta
            if floor is not None and new_value < floor:
                raise PreconditionFailedError(
                    f"{where} would drop to {new_value}", current
                )

            previous = dict(docs[doc_id])
            docs[doc_id][field_name] = new_value
            docs[doc_id].update(merge or {})

            if journal is None:
                self._persist(collection, docs)
                return new_value

            with self._locked(journal.collection):
                entries = self._load(journal.collection)
                entries[uuid.uuid4().hex[:20]] = dict(journal.fields)
                self._persist(collection, docs)
                try:
                    self._persist(journal.collection, entries)
                except StoreError:
                    docs[doc_id] = previous
                    self._persist(collection, docs)
                    raise

            return new_value

    # --- File helpers ---------------------------------------------------------

    def _path(self, collection: str) -> Path:
        return self._data_dir / f"{collection}.json"

    def _locked(self, collection: str) -> threading.RLock:
        return _lock_for(self._path(collection))

    def _load(self, collection: str) -> dict[str, dict[str, Any]]:
        path = self._path(collection)
        if not path.exists():
            return {}
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read collection '{collection}': {exc}") from exc

    def _persist(self, collection: str, docs: dict[str, dict[str, Any]]) -> None:
        path = self._path(collection)
        tmp = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps(docs, indent=2, default=_encode) + "\n", encoding="utf-8"
            )
            os.replace(tmp, path)
        except (OSError, TypeError) as exc:
            raise StoreError(f"Cannot write collection '{collection}': {exc}") from exc
