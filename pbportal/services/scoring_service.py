"""
Scoring Service — committee scoring lifecycle
pbportal/services/scoring_service.py

State per (application_id, scorer_id):

  Empty ──save(is_final=False)──► Draft ──save(is_final=True)──► Final
                                    ▲                              │
                                    └──────save(is_final=False)────┘

  Empty   synthesized on read with every catalog score at 0; never persisted
  Draft   record stored, total recomputed, no master tracker entry
  Final   scores validated, total recomputed, record stored, master tracker
          entry upserted in the same call

Re-finalizing is allowed and refreshes both the record and the projection.
"""

from typing import Dict, List, Mapping, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from pbportal.core.exceptions import PartialFailure, PersistenceError, ValidationError
from pbportal.models.enumerations import ScoringStatus
from pbportal.models.scoring import (
    MasterTrackerEntry,
    ScoringRecord,
    utc_now,
)
from pbportal.repositories.base import ScoringStore
from pbportal.scoring.score_aggregator import ScoreAggregator
from pbportal.services.configuration import ConfigurationProvider

logger = structlog.get_logger(__name__)


class ScoringRecordManager:
    """
    Upsert/finalize lifecycle for scoring records and the master tracker.

    Reads the catalog from the configuration provider on every call.
    """

    def __init__(
        self,
        store: ScoringStore,
        config: ConfigurationProvider,
        aggregator: Optional[ScoreAggregator] = None,
    ):
        self.store = store
        self.config = config
        self.aggregator = aggregator or ScoreAggregator()

    def get(self, application_id: str, scorer_id: str, scorer_name: str = "") -> ScoringRecord:
        """Stored record, or an unsaved Empty record with every score at 0."""
        record = self.store.get_record(application_id, scorer_id)
        if record is not None:
            return record

        catalog = self.config.get_criterion_catalog()
        return ScoringRecord(
            application_id=application_id,
            scorer_id=scorer_id,
            scorer_name=scorer_name,
            scores={criterion_id: 0 for criterion_id in catalog.ids},
            notes={criterion_id: "" for criterion_id in catalog.ids},
        )

    def status(self, application_id: str, scorer_id: str) -> ScoringStatus:
        record = self.store.get_record(application_id, scorer_id)
        return record.status if record is not None else ScoringStatus.EMPTY

    def save(
        self,
        application_id: str,
        scorer_id: str,
        scorer_name: str,
        scores: Mapping[str, int],
        notes: Optional[Mapping[str, str]] = None,
        is_final: bool = False,
    ) -> ScoringRecord:
        """
        Save a draft or finalize.

        Args:
            scores: criterion id → raw score. Missing criteria count as 0.
            notes: criterion id → free-text note.
            is_final: Validate ranges and refresh the master tracker entry.

        Returns:
            The persisted record with its recomputed total.

        Raises:
            ValidationError: bad input; nothing was written.
            PersistenceError: the record write failed; nothing was written.
            PartialFailure: the record was written but the projection write
                failed. Retrying the same call is safe.
        """
        catalog = self.config.get_criterion_catalog()
        max_raw_score = self.config.get_max_raw_score()

        if is_final:
            self.aggregator.validate(scores, catalog, max_raw_score)

        existing = self.store.get_record(application_id, scorer_id)
        now = utc_now()
        try:
            record = ScoringRecord(
                application_id=application_id,
                scorer_id=scorer_id,
                scorer_name=scorer_name,
                scores=dict(scores),
                notes=dict(notes or {}),
                is_final=is_final,
                created_at=existing.created_at if existing and existing.created_at else now,
                updated_at=now,
            )
        except PydanticValidationError as e:
            fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
            raise ValidationError(f"Invalid scoring record: {e}", fields=fields) from e

        record.total = self.aggregator.aggregate(record.scores, catalog, max_raw_score)

        self.store.upsert_record(record)

        try:
            if is_final:
                self.store.upsert_projection(MasterTrackerEntry.from_record(record, catalog))
            else:
                self.store.delete_projection(application_id, scorer_id)
        except PersistenceError as e:
            logger.error(
                "projection_refresh_failed",
                application_id=application_id,
                scorer_id=scorer_id,
                is_final=is_final,
                error=str(e),
            )
            raise PartialFailure(
                operation="finalize" if is_final else "save_draft",
                key=(application_id, scorer_id),
                completed=["record"],
            ) from e

        logger.info(
            "score_finalized" if is_final else "score_draft_saved",
            application_id=application_id,
            scorer_id=scorer_id,
            total=record.total,
            scored_criteria=len([c for c in catalog.ids if c in record.scores]),
            criteria=len(catalog.ids),
        )
        return record

    def finalize(
        self,
        application_id: str,
        scorer_id: str,
        scorer_name: str,
        scores: Mapping[str, int],
        notes: Optional[Mapping[str, str]] = None,
    ) -> ScoringRecord:
        return self.save(application_id, scorer_id, scorer_name, scores, notes, is_final=True)

    def reset(self, scorer_id: str) -> int:
        """
        Remove every record (and master tracker entry) owned by a scorer.

        Idempotent: a scorer with no records yields 0.
        """
        removed = self.store.delete_records_by_scorer(scorer_id)
        logger.info("scorer_reset", scorer_id=scorer_id, removed=removed)
        return removed

    def list_projections(self, application_id: str) -> List[MasterTrackerEntry]:
        return self.store.list_projections(application_id)

    def totals_by_scorer(self, application_id: str) -> Dict[str, float]:
        return {entry.scorer_id: entry.total for entry in self.list_projections(application_id)}
