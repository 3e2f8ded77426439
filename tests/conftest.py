# tests/conftest.py

"""
Pytest Fixtures - Shared stores, catalogs and coefficient tables

EXAMPLE DATA REFERENCE:
- Catalog:    a (weight 40), b (weight 60), max raw score 3
- Tier table: small [0, 50) 1.5 | medium [50, 500) 1.2 | large [500, inf) 1.0
- Application ids: APP-001, APP-002; scorers: scorer-1, scorer-2, scorer-3
"""

from typing import Dict, List, Optional, Tuple

import pytest

from pbportal.core.exceptions import PersistenceError
from pbportal.models.reach import APPLICANT_FIELDS, CoefficientSettings, ReachDeclaration
from pbportal.models.scoring import CriterionCatalog, MasterTrackerEntry, ScoringRecord
from pbportal.repositories.base import ScoringStore
from pbportal.services.configuration import StaticConfigurationProvider


# =============================================================================
# IN-MEMORY STORE
# =============================================================================

class InMemoryScoringStore(ScoringStore):
    """Dict-backed ScoringStore with the same admin-field rules as the real backends."""

    def __init__(self):
        self.records: Dict[Tuple[str, str], ScoringRecord] = {}
        self.projections: Dict[Tuple[str, str], MasterTrackerEntry] = {}
        self.declarations: Dict[str, ReachDeclaration] = {}
        self.fail_projection_writes = False
        self.fail_record_writes = False

    def get_record(self, application_id, scorer_id) -> Optional[ScoringRecord]:
        record = self.records.get((application_id, scorer_id))
        return record.model_copy(deep=True) if record else None

    def upsert_record(self, record):
        if self.fail_record_writes:
            raise PersistenceError("record write failed")
        self.records[record.key] = record.model_copy(deep=True)

    def delete_records_by_scorer(self, scorer_id) -> int:
        keys = [k for k in self.records if k[1] == scorer_id]
        for key in keys:
            del self.records[key]
        for key in [k for k in self.projections if k[1] == scorer_id]:
            del self.projections[key]
        return len(keys)

    def upsert_projection(self, entry):
        if self.fail_projection_writes:
            raise PersistenceError("projection write failed")
        self.projections[entry.key] = entry.model_copy(deep=True)

    def delete_projection(self, application_id, scorer_id):
        if self.fail_projection_writes:
            raise PersistenceError("projection delete failed")
        self.projections.pop((application_id, scorer_id), None)

    def list_projections(self, application_id) -> List[MasterTrackerEntry]:
        return sorted(
            (e for k, e in self.projections.items() if k[0] == application_id),
            key=lambda e: e.scorer_id,
        )

    def get_reach_declaration(self, application_id) -> Optional[ReachDeclaration]:
        declaration = self.declarations.get(application_id)
        return declaration.model_copy() if declaration else None

    def upsert_reach_declaration(self, declaration):
        existing = self.declarations.get(declaration.application_id)
        if existing is None:
            self.declarations[declaration.application_id] = declaration.model_copy()
            return
        self.declarations[declaration.application_id] = existing.model_copy(
            update=declaration.model_dump(include=set(APPLICANT_FIELDS))
        )

    def update_reach_audit(self, application_id, audit_flag, admin_notes) -> bool:
        existing = self.declarations.get(application_id)
        if existing is None:
            return False
        self.declarations[application_id] = existing.model_copy(
            update={"audit_flag": audit_flag, "admin_notes": admin_notes}
        )
        return True


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture
def example_catalog():
    """Two-criterion catalog: a=40, b=60."""
    return CriterionCatalog.model_validate({
        "criteria": [
            {"id": "a", "name": "Criterion A", "weight": 40},
            {"id": "b", "name": "Criterion B", "weight": 60},
        ]
    })


@pytest.fixture
def example_tiers():
    """small [0, 50) 1.5 | medium [50, 500) 1.2 | large [500, inf) 1.0"""
    return CoefficientSettings.model_validate({
        "tiers": [
            {"tier": "small", "min_reach": 0, "max_reach": 50, "factor": 1.5},
            {"tier": "medium", "min_reach": 50, "max_reach": 500, "factor": 1.2},
            {"tier": "large", "min_reach": 500, "max_reach": None, "factor": 1.0},
        ]
    })


@pytest.fixture
def config(example_catalog, example_tiers):
    return StaticConfigurationProvider(example_catalog, example_tiers, max_raw_score=3)


@pytest.fixture
def store():
    return InMemoryScoringStore()


@pytest.fixture
def sample_application_id():
    return "APP-001"
