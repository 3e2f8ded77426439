"""
Base Store - PB Portal Scoring Engine
pbportal/repositories/base.py

Storage interface consumed by the engine. Two interchangeable
implementations exist (Snowflake remote store, Redis key-value store); one is
chosen at process start by core.dependencies.get_store().

All writes are idempotent upserts keyed by (application_id, scorer_id) or
application_id. Implementations raise PersistenceError on backend failure.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from pbportal.models.reach import ReachDeclaration
from pbportal.models.scoring import MasterTrackerEntry, ScoringRecord


class ScoringStore(ABC):
    """Persistence collaborator for scoring records, projections and reach data."""

    # -----------------------------------------------------------------
    # Scoring records
    # -----------------------------------------------------------------

    @abstractmethod
    def get_record(self, application_id: str, scorer_id: str) -> Optional[ScoringRecord]:
        """Stored record for the pair, or None."""

    @abstractmethod
    def upsert_record(self, record: ScoringRecord) -> None:
        """Insert or replace the record at record.key."""

    @abstractmethod
    def delete_records_by_scorer(self, scorer_id: str) -> int:
        """
        Delete every record and projection owned by scorer_id.

        Returns:
            Number of scoring records removed (0 for an unknown scorer).
        """

    # -----------------------------------------------------------------
    # Master tracker projection
    # -----------------------------------------------------------------

    @abstractmethod
    def upsert_projection(self, entry: MasterTrackerEntry) -> None:
        """Insert or replace the master tracker entry at entry.key."""

    @abstractmethod
    def delete_projection(self, application_id: str, scorer_id: str) -> None:
        """Remove the entry for the pair; no-op when absent."""

    @abstractmethod
    def list_projections(self, application_id: str) -> List[MasterTrackerEntry]:
        """All master tracker entries for one application."""

    # -----------------------------------------------------------------
    # Reach declarations
    # -----------------------------------------------------------------

    @abstractmethod
    def get_reach_declaration(self, application_id: str) -> Optional[ReachDeclaration]:
        """Stored declaration, or None."""

    @abstractmethod
    def upsert_reach_declaration(self, declaration: ReachDeclaration) -> None:
        """
        Write the applicant-owned fields of a declaration.

        audit_flag / admin_notes are written only when no declaration exists
        yet; an existing admin review state is never overwritten here.
        """

    @abstractmethod
    def update_reach_audit(
        self,
        application_id: str,
        audit_flag: bool,
        admin_notes: Optional[str],
    ) -> bool:
        """
        Set the admin-owned fields.

        Returns:
            False when no declaration exists for application_id.
        """

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    @staticmethod
    def normalize_timestamp(dt: Optional[datetime]) -> Optional[datetime]:
        """Ensure timestamp is UTC-aware."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
