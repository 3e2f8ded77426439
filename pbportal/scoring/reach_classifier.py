# scoring/reach_classifier.py
"""
Reach Tier Classifier

tier   = first tier whose [min_reach, max_reach) contains the reach figure
factor = configured multiplier for that tier

Default table (see config.Settings.tier_table):
  small   [0, 50)     -> 1.5
  medium  [50, 500)   -> 1.2
  large   [500, inf)  -> 1.0

A boundary value belongs to the upper tier: 49 is small, 50 is medium.
"""

from pbportal.core.exceptions import ConfigError, InvalidInput
from pbportal.models.enumerations import ReachTier
from pbportal.models.reach import CoefficientSettings


class ReachTierClassifier:
    """
    Classify a reach figure into a tier and look up its coefficient factor.

    Stateless: the same (reach_figure, settings) always yields the same result.
    """

    def classify(self, reach_figure: int, settings: CoefficientSettings) -> ReachTier:
        """
        Args:
            reach_figure: Self-reported reach, a non-negative integer.
            settings: Tier table in effect for this call.

        Returns:
            The tier containing reach_figure.
        """
        if isinstance(reach_figure, bool) or not isinstance(reach_figure, int):
            raise InvalidInput(
                f"reach_figure must be an integer, got {reach_figure!r}",
                fields=["reach_figure"],
            )
        if reach_figure < 0:
            raise InvalidInput(
                f"reach_figure must be non-negative, got {reach_figure}",
                fields=["reach_figure"],
            )

        for boundary in settings.tiers:
            if boundary.contains(reach_figure):
                return boundary.tier

        # Beyond every finite boundary
        return settings.tiers[-1].tier

    def factor_for(self, tier: ReachTier, settings: CoefficientSettings) -> float:
        """Configured factor for tier; a missing tier is a configuration bug."""
        for boundary in settings.tiers:
            if boundary.tier == tier:
                return boundary.factor
        raise ConfigError(f"No coefficient factor configured for tier '{getattr(tier, 'value', tier)}'")

    def tier_rank(self, tier: ReachTier, settings: CoefficientSettings) -> int:
        """Position of tier in the table, 0 for the lowest reach band."""
        for rank, boundary in enumerate(settings.tiers):
            if boundary.tier == tier:
                return rank
        raise ConfigError(f"Tier '{getattr(tier, 'value', tier)}' is not in the coefficient settings")
