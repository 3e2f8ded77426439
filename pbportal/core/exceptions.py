"""
Custom Exceptions - PB Portal Scoring Engine
pbportal/core/exceptions.py

Exception taxonomy shared by the scoring and reach-coefficient engine.
"""

from typing import Iterable, List, Optional, Tuple


class ScoringEngineException(Exception):
    """Base exception for all engine errors."""

    pass


class ValidationError(ScoringEngineException):
    """Caller input rejected. Recoverable by correcting the input."""

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None):
        self.message = message
        self.fields: List[str] = list(fields or [])
        super().__init__(message)


class InvalidInput(ValidationError):
    """Input outside the domain of a pure calculation (e.g. negative reach)."""

    pass


class ConfigError(ScoringEngineException):
    """Criterion catalog or coefficient settings are internally inconsistent."""

    def __init__(self, message: str = "Invalid engine configuration"):
        self.message = message
        super().__init__(message)


class EntityNotFoundException(ScoringEngineException):
    """Entity not found in the store."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with ID {entity_id} not found")


class PersistenceError(ScoringEngineException):
    """Storage collaborator failure."""

    def __init__(self, message: str = "Storage operation failed"):
        self.message = message
        super().__init__(message)


class DatabaseConnectionException(PersistenceError):
    """Store connection failure."""

    def __init__(self, message: str = "Database connection failed"):
        super().__init__(message)


class PartialFailure(PersistenceError):
    """
    A multi-write operation stopped after some writes succeeded.

    Every write in the engine is an idempotent keyed upsert, so the caller
    can retry the same operation to converge.
    """

    def __init__(
        self,
        operation: str,
        key: Tuple[str, ...],
        completed: Iterable[str],
        message: Optional[str] = None,
    ):
        self.operation = operation
        self.key = tuple(key)
        self.completed: List[str] = list(completed)
        super().__init__(
            message
            or f"{operation} for {'/'.join(self.key)} partially applied "
               f"(completed: {', '.join(self.completed) or 'none'}); retry is safe"
        )
