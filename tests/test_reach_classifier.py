# tests/test_reach_classifier.py
"""
ReachTierClassifier Tests

Example table: small [0, 50) 1.5 | medium [50, 500) 1.2 | large [500, inf) 1.0
"""

import pytest

from pbportal.core.exceptions import ConfigError, InvalidInput, ValidationError
from pbportal.models.enumerations import ReachTier
from pbportal.models.reach import CoefficientSettings
from pbportal.scoring.reach_classifier import ReachTierClassifier


@pytest.fixture
def classifier():
    return ReachTierClassifier()


class TestClassify:
    """Tests for tier boundaries."""

    @pytest.mark.parametrize("reach,tier", [
        (0, ReachTier.SMALL),
        (1, ReachTier.SMALL),
        (49, ReachTier.SMALL),
        (50, ReachTier.MEDIUM),
        (499, ReachTier.MEDIUM),
        (500, ReachTier.LARGE),
        (10_000_000, ReachTier.LARGE),
    ])
    def test_boundaries(self, classifier, example_tiers, reach, tier):
        assert classifier.classify(reach, example_tiers) == tier

    def test_negative_reach_rejected(self, classifier, example_tiers):
        with pytest.raises(InvalidInput) as exc_info:
            classifier.classify(-1, example_tiers)
        assert exc_info.value.fields == ["reach_figure"]

    @pytest.mark.parametrize("bad", [1.5, "50", None, True])
    def test_non_integer_rejected(self, classifier, example_tiers, bad):
        with pytest.raises(ValidationError):
            classifier.classify(bad, example_tiers)


class TestFactorFor:
    """Tests for factor lookup."""

    def test_example_factors(self, classifier, example_tiers):
        assert classifier.factor_for(ReachTier.SMALL, example_tiers) == 1.5
        assert classifier.factor_for(ReachTier.MEDIUM, example_tiers) == 1.2
        assert classifier.factor_for(ReachTier.LARGE, example_tiers) == 1.0

    def test_missing_tier_is_config_error(self, classifier):
        settings = CoefficientSettings.model_validate({
            "tiers": [
                {"tier": "small", "min_reach": 0, "max_reach": 50, "factor": 1.5},
                {"tier": "large", "min_reach": 50, "max_reach": None, "factor": 1.0},
            ]
        })
        with pytest.raises(ConfigError):
            classifier.factor_for(ReachTier.MEDIUM, settings)

    def test_tier_rank(self, classifier, example_tiers):
        ranks = [classifier.tier_rank(t, example_tiers) for t in ReachTier]
        assert ranks == [0, 1, 2]
