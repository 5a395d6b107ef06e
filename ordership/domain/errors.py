from enum import Enum
from typing import Optional

class ErrorKind(str, Enum):
    VALIDATION = "validation"
    DUPLICATE_KEY = "duplicate_key"
    NOT_FOUND = "not_found"
    IDENTITY_ASSIGNMENT = "identity_assignment"
    PERSISTENCE = "persistence"

class OrderShipmentError(Exception):
    """Base class for every error the coordinators report to the console."""
    kind: ErrorKind = ErrorKind.PERSISTENCE

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def __str__(self) -> str:
        return self.message

class ValidationError(OrderShipmentError):
    """Missing/blank field, value out of range, or bad date ordering. Nothing was written."""
    kind = ErrorKind.VALIDATION

class DuplicateKeyError(OrderShipmentError):
    """Order number or tracking code already used by an active record."""
    kind = ErrorKind.DUPLICATE_KEY

class NotFoundError(OrderShipmentError):
    kind = ErrorKind.NOT_FOUND

class IdentityAssignmentError(OrderShipmentError):
    """The store accepted an insert but produced no generated id."""
    kind = ErrorKind.IDENTITY_ASSIGNMENT

class PersistenceError(OrderShipmentError):
    kind = ErrorKind.PERSISTENCE
