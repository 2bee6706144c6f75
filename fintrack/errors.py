from typing import Optional


class FinanceError(Exception):
    """Base class for errors raised by the stores."""


class ValidationError(FinanceError):
    """Input rejected before anything was written."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    @classmethod
    def from_left(cls, error: dict) -> "ValidationError":
        return cls(error.get("message", "invalid input"), field=error.get("field"))


class NotFoundError(FinanceError):
    def __init__(self, kind: str, id: str):
        super().__init__(f"{kind} {id} not found")
        self.kind = kind
        self.id = id


class TransportError(FinanceError):
    """The backing database could not be reached or failed mid-request."""
