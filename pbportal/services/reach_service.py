"""
Reach Service — applicant reach declarations and admin review
pbportal/services/reach_service.py

Applicant path (ReachSubmissionManager.submit):
  validate → classify reach → look up factor → upsert declaration

Admin path (ReachAuditService): audit flag and notes only. The applicant
path never overwrites them; resubmission recomputes tier and factor and
keeps the review state.
"""

from typing import List, Optional

import structlog

from pbportal.core.exceptions import EntityNotFoundException, ValidationError
from pbportal.models.reach import (
    CoefficientPreview,
    ReachDeclaration,
    ReachEvidence,
    ReachSummary,
)
from pbportal.models.scoring import utc_now
from pbportal.repositories.base import ScoringStore
from pbportal.scoring.reach_classifier import ReachTierClassifier
from pbportal.scoring.vote_weighting import VoteWeighting
from pbportal.services.configuration import ConfigurationProvider

logger = structlog.get_logger(__name__)

STATUS_UNDER_REVIEW = "Under Review"
STATUS_VERIFIED = "Verified"
EXAMPLE_VOTES = 100


class ReachSubmissionManager:
    """Validate, classify and store an application's reach declaration."""

    def __init__(
        self,
        store: ScoringStore,
        config: ConfigurationProvider,
        classifier: Optional[ReachTierClassifier] = None,
    ):
        self.store = store
        self.config = config
        self.classifier = classifier or ReachTierClassifier()

    @staticmethod
    def _missing_fields(
        reach_figure: int,
        evidence: Optional[ReachEvidence],
        declaration_confirmed: bool,
    ) -> List[str]:
        missing = []
        if isinstance(reach_figure, bool) or not isinstance(reach_figure, int) or reach_figure <= 0:
            missing.append("reach_figure")
        if evidence is None or not evidence.has_evidence:
            missing.append("evidence")
        if declaration_confirmed is not True:
            missing.append("declaration_confirmed")
        return missing

    def submit(
        self,
        application_id: str,
        reach_figure: int,
        evidence: Optional[ReachEvidence],
        declaration_confirmed: bool,
    ) -> ReachDeclaration:
        """
        Store (or replace) the applicant-owned part of a declaration.

        Raises:
            ValidationError: reach figure not a positive integer, no evidence,
                or the declaration not confirmed. ``fields`` lists every
                offending field and nothing is written.
        """
        missing = self._missing_fields(reach_figure, evidence, declaration_confirmed)
        if missing:
            logger.warning("reach_submission_rejected", application_id=application_id, fields=missing)
            raise ValidationError(
                f"Reach submission incomplete: {', '.join(missing)}",
                fields=missing,
            )

        settings = self.config.get_coefficient_settings()
        tier = self.classifier.classify(reach_figure, settings)
        factor = self.classifier.factor_for(tier, settings)

        existing = self.store.get_reach_declaration(application_id)
        now = utc_now()
        declaration = ReachDeclaration(
            application_id=application_id,
            reach_figure=reach_figure,
            evidence_url=(evidence.evidence_url or "").strip() or None,
            evidence_file_path=(evidence.evidence_file_path or "").strip() or None,
            declaration_confirmed=True,
            tier=tier,
            coefficient_factor=factor,
            audit_flag=existing.audit_flag if existing else False,
            admin_notes=existing.admin_notes if existing else None,
            submitted_at=existing.submitted_at if existing else now,
            updated_at=now,
        )
        self.store.upsert_reach_declaration(declaration)

        logger.info(
            "reach_submitted",
            application_id=application_id,
            reach_figure=reach_figure,
            tier=tier.value,
            coefficient_factor=factor,
            resubmission=existing is not None,
        )
        return declaration

    def get_declaration(self, application_id: str) -> Optional[ReachDeclaration]:
        return self.store.get_reach_declaration(application_id)

    def locked_view(self, application_id: str) -> Optional[ReachSummary]:
        """Stored values for the read-only display; nothing is recomputed."""
        declaration = self.store.get_reach_declaration(application_id)
        if declaration is None or not declaration.declaration_confirmed:
            return None
        return ReachSummary(
            application_id=declaration.application_id,
            reach_figure=declaration.reach_figure,
            tier=declaration.tier,
            coefficient_factor=declaration.coefficient_factor,
            audit_flag=declaration.audit_flag,
            admin_notes=declaration.admin_notes,
            status=STATUS_UNDER_REVIEW if declaration.audit_flag else STATUS_VERIFIED,
        )

    def preview(self, reach_figure: int) -> Optional[CoefficientPreview]:
        """Live tier and factor for a figure being typed; None until it is positive."""
        if isinstance(reach_figure, bool) or not isinstance(reach_figure, int) or reach_figure <= 0:
            return None
        settings = self.config.get_coefficient_settings()
        tier = self.classifier.classify(reach_figure, settings)
        factor = self.classifier.factor_for(tier, settings)
        return CoefficientPreview(
            reach_figure=reach_figure,
            tier=tier,
            coefficient_factor=factor,
            example_raw_votes=EXAMPLE_VOTES,
            example_adjusted_votes=VoteWeighting().adjust(EXAMPLE_VOTES, factor, settings),
        )


class ReachAuditService:
    """Administrator operations on the admin-owned declaration fields."""

    def __init__(self, store: ScoringStore):
        self.store = store

    def _require(self, application_id: str) -> ReachDeclaration:
        declaration = self.store.get_reach_declaration(application_id)
        if declaration is None:
            raise EntityNotFoundException("ReachDeclaration", application_id)
        return declaration

    def _update(self, application_id: str, audit_flag: bool, admin_notes: Optional[str]) -> ReachDeclaration:
        if not self.store.update_reach_audit(application_id, audit_flag, admin_notes):
            raise EntityNotFoundException("ReachDeclaration", application_id)
        logger.info(
            "reach_audit_updated",
            application_id=application_id,
            audit_flag=audit_flag,
            has_notes=bool(admin_notes),
        )
        return self._require(application_id)

    def flag(self, application_id: str, admin_notes: Optional[str] = None) -> ReachDeclaration:
        """Mark for review. Existing notes are kept unless new ones are given."""
        current = self._require(application_id)
        return self._update(application_id, True, admin_notes if admin_notes is not None else current.admin_notes)

    def clear(self, application_id: str) -> ReachDeclaration:
        current = self._require(application_id)
        return self._update(application_id, False, current.admin_notes)

    def set_notes(self, application_id: str, notes: Optional[str]) -> ReachDeclaration:
        current = self._require(application_id)
        return self._update(application_id, current.audit_flag, notes)
