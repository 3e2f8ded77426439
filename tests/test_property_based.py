# tests/test_property_based.py
"""
Property-Based Tests — reach classification and score aggregation

Hypothesis tests with max_examples=500, covering:
  - 3 ReachTierClassifier properties
  - 3 ScoreAggregator properties
"""

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from pbportal.models.reach import CoefficientSettings
from pbportal.models.scoring import CriterionCatalog
from pbportal.scoring.reach_classifier import ReachTierClassifier
from pbportal.scoring.score_aggregator import ScoreAggregator

# ---------------------------------------------------------------------------
# Shared strategies
# ---------------------------------------------------------------------------

reach_st = st.integers(min_value=0, max_value=100_000)
raw_score_st = st.integers(min_value=0, max_value=3)
weight_st = st.integers(min_value=1, max_value=50)


@st.composite
def tier_table_st(draw):
    """Draw a valid three-tier table with random boundaries and factors."""
    small_max = draw(st.integers(min_value=1, max_value=5_000))
    medium_max = draw(st.integers(min_value=small_max + 1, max_value=50_000))
    return CoefficientSettings.model_validate({
        "tiers": [
            {"tier": "small", "min_reach": 0, "max_reach": small_max,
             "factor": draw(st.floats(min_value=1.0, max_value=3.0))},
            {"tier": "medium", "min_reach": small_max, "max_reach": medium_max,
             "factor": draw(st.floats(min_value=0.5, max_value=2.0))},
            {"tier": "large", "min_reach": medium_max, "max_reach": None,
             "factor": draw(st.floats(min_value=0.1, max_value=1.0))},
        ]
    })


@st.composite
def catalog_st(draw):
    """Draw a catalog of 1-10 criteria with positive integer weights."""
    weights = draw(st.lists(weight_st, min_size=1, max_size=10))
    return CriterionCatalog.model_validate({
        "criteria": [
            {"id": f"c{i}", "name": f"Criterion {i}", "weight": w}
            for i, w in enumerate(weights)
        ]
    })


classifier = ReachTierClassifier()
aggregator = ScoreAggregator()


# ---------------------------------------------------------------------------
# ReachTierClassifier
# ---------------------------------------------------------------------------

class TestClassifierProperties:

    @given(reach=reach_st, table=tier_table_st())
    @settings(max_examples=500)
    def test_exactly_one_tier_contains_each_reach(self, reach, table):
        """Every figure in [0, 100000] falls in exactly one tier."""
        containing = [b.tier for b in table.tiers if b.contains(reach)]
        assert len(containing) == 1
        assert classifier.classify(reach, table) == containing[0]

    @given(r1=reach_st, r2=reach_st, table=tier_table_st())
    @settings(max_examples=500)
    def test_classification_is_monotonic(self, r1, r2, table):
        """A larger reach never lands in a lower tier."""
        assume(r1 <= r2)
        rank1 = classifier.tier_rank(classifier.classify(r1, table), table)
        rank2 = classifier.tier_rank(classifier.classify(r2, table), table)
        assert rank1 <= rank2

    @given(reach=reach_st, table=tier_table_st())
    @settings(max_examples=500)
    def test_classification_is_deterministic(self, reach, table):
        assert classifier.classify(reach, table) == classifier.classify(reach, table)


# ---------------------------------------------------------------------------
# ScoreAggregator
# ---------------------------------------------------------------------------

class TestAggregatorProperties:

    @given(catalog=catalog_st())
    @settings(max_examples=500)
    def test_all_max_equals_total_weight(self, catalog):
        scores = {cid: 3 for cid in catalog.ids}
        assert aggregator.aggregate(scores, catalog, 3) == pytest.approx(catalog.total_weight)

    @given(catalog=catalog_st())
    @settings(max_examples=500)
    def test_all_zero_is_zero(self, catalog):
        scores = {cid: 0 for cid in catalog.ids}
        assert aggregator.aggregate(scores, catalog, 3) == 0.0

    @given(catalog=catalog_st(), data=st.data())
    @settings(max_examples=500)
    def test_total_bounded_by_weights(self, catalog, data):
        """0 ≤ total ≤ Σ weights for in-range scores."""
        scores = {cid: data.draw(raw_score_st) for cid in catalog.ids}
        total = aggregator.aggregate(scores, catalog, 3)
        assert 0.0 <= total <= catalog.total_weight + 1e-9
