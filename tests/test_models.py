# tests/test_models.py

"""
Model Validation Tests - Pydantic models for scoring and reach data
"""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from pbportal.config import SCORING_CRITERIA
from pbportal.models.enumerations import ReachTier, ScoringStatus
from pbportal.models.reach import CoefficientSettings, ReachEvidence, TierBoundary
from pbportal.models.scoring import CriterionCatalog, MasterTrackerEntry, ScoringRecord


# ENUMERATION TESTS

class TestEnumerations:
    """Tests for tier and status enumerations."""

    def test_tier_values(self):
        """Test tier names in ascending reach order."""
        assert [t.value for t in ReachTier] == ["small", "medium", "large"]

    def test_status_values(self):
        assert [s.value for s in ScoringStatus] == ["empty", "draft", "final"]


# CRITERION CATALOG TESTS

class TestCriterionCatalog:
    """Tests for CriterionCatalog validation."""

    def test_default_catalog_weights_sum_to_100(self):
        """Test the published criteria total 100 when fully scored."""
        catalog = CriterionCatalog.model_validate({"criteria": SCORING_CRITERIA})
        assert len(catalog.criteria) == 10
        assert catalog.total_weight == 100

    def test_empty_catalog_rejected(self):
        with pytest.raises(ValidationError):
            CriterionCatalog(criteria=[])

    def test_duplicate_ids_rejected(self):
        """Test duplicate criterion ids are reported."""
        with pytest.raises(ValidationError) as exc_info:
            CriterionCatalog.model_validate({
                "criteria": [
                    {"id": "a", "name": "A", "weight": 10},
                    {"id": "a", "name": "A again", "weight": 20},
                ]
            })
        assert "Duplicate criterion ids: a" in str(exc_info.value)

    def test_non_positive_weight_rejected(self):
        with pytest.raises(ValidationError):
            CriterionCatalog.model_validate({"criteria": [{"id": "a", "name": "A", "weight": 0}]})

    def test_get_by_id(self, example_catalog):
        assert example_catalog.get("b").weight == 60
        assert example_catalog.get("missing") is None
        assert example_catalog.ids == ["a", "b"]


# SCORING RECORD TESTS

class TestScoringRecord:
    """Tests for ScoringRecord status derivation."""

    def test_unsaved_record_is_empty(self):
        record = ScoringRecord(application_id="APP-001", scorer_id="scorer-1")
        assert record.status == ScoringStatus.EMPTY
        assert record.key == ("APP-001", "scorer-1")

    def test_saved_draft_status(self):
        record = ScoringRecord(
            application_id="APP-001",
            scorer_id="scorer-1",
            created_at=datetime.now(timezone.utc),
        )
        assert record.status == ScoringStatus.DRAFT

    def test_final_status(self):
        record = ScoringRecord(application_id="APP-001", scorer_id="scorer-1", is_final=True)
        assert record.status == ScoringStatus.FINAL

    def test_blank_application_id_rejected(self):
        with pytest.raises(ValidationError):
            ScoringRecord(application_id="", scorer_id="scorer-1")

    def test_non_integer_score_rejected(self):
        with pytest.raises(ValidationError):
            ScoringRecord(application_id="APP-001", scorer_id="scorer-1", scores={"a": "high"})


class TestMasterTrackerEntry:
    """Tests for projecting a finalized record."""

    def test_from_record_follows_catalog_order(self, example_catalog):
        """Test missing criteria are projected as 0 in catalog order."""
        record = ScoringRecord(
            application_id="APP-001",
            scorer_id="scorer-1",
            scorer_name="Sam",
            scores={"b": 2},
            notes={"b": "solid budget"},
            is_final=True,
            total=40.0,
        )
        entry = MasterTrackerEntry.from_record(record, example_catalog)
        assert [s.id for s in entry.scores] == ["a", "b"]
        assert [s.score for s in entry.scores] == [0, 2]
        assert entry.scores[1].notes == "solid budget"
        assert entry.total == 40.0
        assert entry.timestamp == record.updated_at


# COEFFICIENT SETTINGS TESTS

class TestCoefficientSettings:
    """Tests for tier table partition validation."""

    def test_example_table_is_valid(self, example_tiers):
        assert [t.tier for t in example_tiers.tiers] == list(ReachTier)
        assert example_tiers.enabled is True
        assert example_tiers.apply_to_in_person is False

    def test_gap_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            CoefficientSettings.model_validate({
                "tiers": [
                    {"tier": "small", "min_reach": 0, "max_reach": 50, "factor": 1.5},
                    {"tier": "large", "min_reach": 60, "max_reach": None, "factor": 1.0},
                ]
            })
        assert "Gap or overlap" in str(exc_info.value)

    def test_must_start_at_zero(self):
        with pytest.raises(ValidationError):
            CoefficientSettings.model_validate({
                "tiers": [{"tier": "large", "min_reach": 1, "max_reach": None, "factor": 1.0}]
            })

    def test_last_tier_must_be_open_ended(self):
        with pytest.raises(ValidationError):
            CoefficientSettings.model_validate({
                "tiers": [{"tier": "small", "min_reach": 0, "max_reach": 50, "factor": 1.5}]
            })

    def test_duplicate_tier_rejected(self):
        with pytest.raises(ValidationError):
            CoefficientSettings.model_validate({
                "tiers": [
                    {"tier": "small", "min_reach": 0, "max_reach": 50, "factor": 1.5},
                    {"tier": "small", "min_reach": 50, "max_reach": None, "factor": 1.0},
                ]
            })

    def test_boundary_max_must_exceed_min(self):
        with pytest.raises(ValidationError):
            TierBoundary(tier=ReachTier.SMALL, min_reach=10, max_reach=10, factor=1.5)

    def test_boundary_contains_is_half_open(self):
        boundary = TierBoundary(tier=ReachTier.SMALL, min_reach=0, max_reach=50, factor=1.5)
        assert boundary.contains(0)
        assert boundary.contains(49)
        assert not boundary.contains(50)


class TestReachEvidence:
    """Tests for evidence presence."""

    @pytest.mark.parametrize("url,path,expected", [
        ("https://example.org/stats", None, True),
        (None, "uploads/reach.pdf", True),
        ("   ", "", False),
        (None, None, False),
    ])
    def test_has_evidence(self, url, path, expected):
        assert ReachEvidence(evidence_url=url, evidence_file_path=path).has_evidence is expected
