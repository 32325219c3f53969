"""Exceptions raised by the portfolio core.

Unknown photo ids and out-of-range indices are deliberately absent here:
referencing a photo that no longer exists is a silent no-op.
"""

from __future__ import annotations


class PortfolioCoreError(Exception):
    """Base class for all core errors."""


class InvalidStateTransition(PortfolioCoreError):
    """An operation was invoked from a capture step that forbids it.

    Attributes:
        step: Value of the step the session was in.
        operation: Name of the rejected operation.
    """

    def __init__(self, step: str, operation: str) -> None:
        super().__init__(f"{operation} is not allowed during {step}")
        self.step = step
        self.operation = operation


class DomainViolation(PortfolioCoreError, ValueError):
    """A value lies outside its fixed domain (rating, tooth number)."""
