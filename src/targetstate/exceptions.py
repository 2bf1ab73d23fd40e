"""Custom exception hierarchy for targetstate."""

from __future__ import annotations


class TargetStateError(Exception):
    """Base exception for all targetstate errors."""


class InvalidArgumentError(TargetStateError, TypeError):
    """An operation received an argument of the wrong shape.

    Raised before any mutation takes place, so the state passed to the
    failing call is left untouched.
    """

    def __init__(self, message: str, *, argument: str = "") -> None:
        self.argument = argument
        super().__init__(message)


class TargetDefinitionError(TargetStateError, ValueError):
    """A target definition could not be parsed."""

    def __init__(self, message: str, *, index: int | None = None) -> None:
        self.index = index
        super().__init__(message)


class StateMigrationError(TargetStateError):
    """A persisted state blob has nothing usable to migrate."""
