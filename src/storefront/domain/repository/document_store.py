"""Abstract document store.

A schemaless store keyed by collection name and document id. The stock
core needs point reads, field-level merges, a filtered query for the
low-stock sweep, and one atomic conditional increment through which every
stock mutation is funnelled.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations live in the infrastructure layer.
"""

from __future__ import annotations

import operator
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

from storefront.domain.exceptions import ValidationError

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class DocumentSnapshot:
    """A point-in-time read of one document."""

    id: str
    fields: dict[str, Any] = field(default_factory=dict)
    exists: bool = True

    @staticmethod
    def missing(doc_id: str) -> DocumentSnapshot:
        return DocumentSnapshot(id=doc_id, fields={}, exists=False)


@dataclass(frozen=True)
class FieldFilter:
    """``field <op> value``; documents lacking the field never match."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValidationError(f"Unsupported filter operator: {self.op!r}")

    def matches(self, fields: dict[str, Any]) -> bool:
        if fields.get(self.field) is None:
            return False
        try:
            return _OPERATORS[self.op](fields[self.field], self.value)
        except TypeError:
            return False


@dataclass(frozen=True)
class JournalEntry:
    """A document appended to ``collection`` in the same atomic step."""

    collection: str
    fields: dict[str, Any]


class DocumentStore(ABC):

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """Return the document, or a snapshot with ``exists=False``."""

    @abstractmethod
    def add(self, collection: str, fields: dict[str, Any]) -> str:
        """Insert a new document under a generated id and return the id."""

    @abstractmethod
    def set(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Create or fully replace a document."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge ``fields`` into an existing document.

        Raises DocumentNotFoundError if the document does not exist.
        """

    @abstractmethod
    def query(self, collection: str, *filters: FieldFilter) -> list[DocumentSnapshot]:
        """Return every document matching all ``filters``."""

    @abstractmethod
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
        """Atomically add ``delta`` to an integer field and return the new value.

        A missing field counts as 0. The write is refused with
        PreconditionFailedError when the result would fall below ``floor``
        or when the current value differs from ``expect``. ``merge`` fields
        are written and ``journal`` is appended in the same step.

        Raises DocumentNotFoundError if the document does not exist.
        """
