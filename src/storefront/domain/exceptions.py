"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Each carries an ``http_status`` hint for request handlers that translate
them into responses.

Infrastructure failures (the document store being unreachable, a write
precondition not holding) are ``StoreError`` subclasses instead, so callers
can tell "the business said no" apart from "the store broke".
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    http_status = 400


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    http_status = 400


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    http_status = 404


class InsufficientStockError(DomainException):
    """One or more items cannot be covered by current stock."""

    http_status = 409

    def __init__(self, message: str, unavailable_items: list | None = None) -> None:
        super().__init__(message)
        self.unavailable_items = list(unavailable_items or [])


class PaymentGatewayError(DomainException):
    """The payment gateway refused or failed to create a payment order."""

    http_status = 502


class StoreError(Exception):
    """The document store failed to serve a request."""

    http_status = 500


class DocumentNotFoundError(StoreError):
    """An update targeted a document that does not exist."""

    http_status = 404

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"No document '{doc_id}' in collection '{collection}'")
        self.collection = collection
        self.doc_id = doc_id


class PreconditionFailedError(StoreError):
    """A conditional write was refused because its guard did not hold."""

    http_status = 409

    def __init__(self, message: str, current: int) -> None:
        super().__init__(message)
        self.current = current
