"""Exceptions raised by the payment record store."""

from typing import Any, Dict, List, Optional


class PaymentRecordError(Exception):
    """Base class for payment record errors."""


class ValidationError(PaymentRecordError, ValueError):
    """Input could not be coerced into a storable record.

    Attributes:
        errors: Error details reported by the input schema, if any.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class ConflictError(PaymentRecordError):
    """A create would violate a uniqueness constraint.

    Attributes:
        key: The unique column that clashed, ``id`` unless stated otherwise.
    """

    def __init__(self, entity: str, identifier: Any, key: str = "id"):
        super().__init__(f"{entity} with {key} {identifier!r} already exists")
        self.entity = entity
        self.identifier = identifier
        self.key = key


class NotFoundError(PaymentRecordError, LookupError):
    """The targeted record does not exist."""

    def __init__(self, entity: str, identifier: Any):
        super().__init__(f"{entity} {identifier!r} not found")
        self.entity = entity
        self.identifier = identifier
