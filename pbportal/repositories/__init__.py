"""
Repositories Package - PB Portal Scoring Engine
pbportal/repositories/__init__.py

Storage layer: one ScoringStore interface, Redis and Snowflake backends.
"""

from pbportal.repositories.base import ScoringStore
from pbportal.repositories.redis_store import RedisScoringStore
from pbportal.repositories.snowflake_store import SnowflakeScoringStore

__all__ = [
    "ScoringStore",
    "RedisScoringStore",
    "SnowflakeScoringStore",
]
