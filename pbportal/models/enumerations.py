from enum import Enum

class ReachTier(str, Enum):
    SMALL = "small"      # Smallest audiences, largest boost
    MEDIUM = "medium"
    LARGE = "large"      # Baseline, usually no adjustment

class ScoringStatus(str, Enum):
    EMPTY = "empty"      # Synthesized on first read, never persisted
    DRAFT = "draft"
    FINAL = "final"

class StorageBackend(str, Enum):
    REDIS = "redis"
    SNOWFLAKE = "snowflake"
