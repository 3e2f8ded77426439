"""
Core Package - PB Portal Scoring Engine
pbportal/core/__init__.py

Core infrastructure: exceptions, logging setup, dependency wiring.
"""

from pbportal.core.exceptions import (
    ConfigError,
    DatabaseConnectionException,
    EntityNotFoundException,
    InvalidInput,
    PartialFailure,
    PersistenceError,
    ScoringEngineException,
    ValidationError,
)

__all__ = [
    "ConfigError",
    "DatabaseConnectionException",
    "EntityNotFoundException",
    "InvalidInput",
    "PartialFailure",
    "PersistenceError",
    "ScoringEngineException",
    "ValidationError",
]
