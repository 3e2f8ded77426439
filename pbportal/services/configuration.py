"""
Configuration Provider - PB Portal Scoring Engine
pbportal/services/configuration.py

Supplies the criterion catalog and coefficient settings to the engine.
Settings are read on every call, so a change to the environment, the .env
file or the catalog JSON takes effect on the next operation.
"""

from pathlib import Path
from typing import Callable, Protocol

from pydantic import ValidationError as PydanticValidationError

from pbportal.config import SCORING_CRITERIA, Settings
from pbportal.core.exceptions import ConfigError
from pbportal.models.reach import CoefficientSettings
from pbportal.models.scoring import CriterionCatalog


class ConfigurationProvider(Protocol):
    """Read-only configuration collaborator."""

    def get_criterion_catalog(self) -> CriterionCatalog: ...

    def get_max_raw_score(self) -> int: ...

    def get_coefficient_settings(self) -> CoefficientSettings: ...

    def get_scoring_threshold(self) -> float: ...


class SettingsConfigurationProvider:
    """Builds configuration from pbportal.config.Settings on each call."""

    def __init__(self, settings_factory: Callable[[], Settings] = Settings):
        self.settings_factory = settings_factory

    def _settings(self) -> Settings:
        try:
            return self.settings_factory()
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid settings: {e}") from e

    def get_criterion_catalog(self) -> CriterionCatalog:
        settings = self._settings()
        try:
            if settings.SCORING_CRITERIA_PATH:
                path = Path(settings.SCORING_CRITERIA_PATH)
                return CriterionCatalog.model_validate_json(path.read_text(encoding="utf-8"))
            return CriterionCatalog.model_validate({"criteria": SCORING_CRITERIA})
        except OSError as e:
            raise ConfigError(f"Cannot read criteria file {settings.SCORING_CRITERIA_PATH}: {e}") from e
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid criterion catalog: {e}") from e

    def get_max_raw_score(self) -> int:
        return self._settings().MAX_RAW_SCORE

    def get_coefficient_settings(self) -> CoefficientSettings:
        settings = self._settings()
        try:
            return CoefficientSettings.model_validate({
                "tiers": settings.tier_table,
                "enabled": settings.COEFFICIENT_ENABLED,
                "apply_to_in_person": settings.COEFFICIENT_APPLY_TO_IN_PERSON,
            })
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid coefficient settings: {e}") from e

    def get_scoring_threshold(self) -> float:
        return self._settings().SCORING_THRESHOLD


class StaticConfigurationProvider:
    """Fixed configuration values, e.g. loaded by the host application per round."""

    def __init__(
        self,
        catalog: CriterionCatalog,
        coefficient_settings: CoefficientSettings,
        max_raw_score: int = 3,
        scoring_threshold: float = 50.0,
    ):
        self.catalog = catalog
        self.coefficient_settings = coefficient_settings
        self.max_raw_score = max_raw_score
        self.scoring_threshold = scoring_threshold

    def get_criterion_catalog(self) -> CriterionCatalog:
        return self.catalog

    def get_max_raw_score(self) -> int:
        return self.max_raw_score

    def get_coefficient_settings(self) -> CoefficientSettings:
        return self.coefficient_settings

    def get_scoring_threshold(self) -> float:
        return self.scoring_threshold
