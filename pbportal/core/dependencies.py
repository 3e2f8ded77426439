"""
Dependencies - PB Portal Scoring Engine
pbportal/core/dependencies.py

Process-wide wiring. The store is chosen once from STORAGE_BACKEND; the
managers share it. Configuration is still read per call by the provider.
"""

import logging
from functools import lru_cache

from pbportal.config import Settings, get_settings
from pbportal.core.exceptions import ConfigError
from pbportal.core.logging import configure_logging
from pbportal.models.enumerations import StorageBackend
from pbportal.repositories.base import ScoringStore
from pbportal.repositories.redis_store import RedisScoringStore
from pbportal.repositories.snowflake_store import SnowflakeScoringStore
from pbportal.services.configuration import SettingsConfigurationProvider
from pbportal.services.monitor_service import ScoringMonitorService
from pbportal.services.reach_service import ReachAuditService, ReachSubmissionManager
from pbportal.services.redis_client import create_redis_client
from pbportal.services.scoring_service import ScoringRecordManager

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> ScoringStore:
    """Instantiate the configured storage backend."""
    backend = StorageBackend(settings.STORAGE_BACKEND)
    if backend == StorageBackend.SNOWFLAKE:
        return SnowflakeScoringStore()
    if backend == StorageBackend.REDIS:
        return RedisScoringStore(create_redis_client(settings), prefix=settings.REDIS_KEY_PREFIX)
    raise ConfigError(f"Unsupported storage backend: {settings.STORAGE_BACKEND}")


@lru_cache()
def get_store() -> ScoringStore:
    """Get the cached ScoringStore for this process."""
    store = build_store(get_settings())
    logger.info(f"Using {type(store).__name__}")
    return store


@lru_cache()
def get_configuration_provider() -> SettingsConfigurationProvider:
    return SettingsConfigurationProvider()


@lru_cache()
def get_scoring_manager() -> ScoringRecordManager:
    """Get cached ScoringRecordManager instance."""
    return ScoringRecordManager(get_store(), get_configuration_provider())


@lru_cache()
def get_reach_manager() -> ReachSubmissionManager:
    """Get cached ReachSubmissionManager instance."""
    return ReachSubmissionManager(get_store(), get_configuration_provider())


@lru_cache()
def get_reach_audit_service() -> ReachAuditService:
    """Get cached ReachAuditService instance."""
    return ReachAuditService(get_store())


@lru_cache()
def get_scoring_monitor() -> ScoringMonitorService:
    """Get cached ScoringMonitorService instance."""
    return ScoringMonitorService(get_store(), get_configuration_provider())


def reset_dependencies() -> None:
    """Drop cached instances (tests, or after changing STORAGE_BACKEND)."""
    for factory in (
        get_store,
        get_configuration_provider,
        get_scoring_manager,
        get_reach_manager,
        get_reach_audit_service,
        get_scoring_monitor,
        get_settings,
    ):
        factory.cache_clear()


def init_engine() -> ScoringStore:
    """Process start: configure logging and select the store."""
    settings = get_settings()
    configure_logging(settings)
    store = get_store()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started ({settings.APP_ENV})")
    return store
