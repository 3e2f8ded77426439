"""
Snowflake Store — remote persistence
pbportal/repositories/snowflake_store.py

Tables (see services/snowflake.py SCHEMA_DDL):
  - scoring_records     one row per (application_id, scorer_id)
  - master_tracker      finalized projection, same key
  - reach_declarations  one row per application_id

Every write is a MERGE keyed on the table's primary key, so retries are safe.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from snowflake.connector.errors import Error as SnowflakeError

from pbportal.core.exceptions import DatabaseConnectionException, PersistenceError
from pbportal.models.reach import ReachDeclaration
from pbportal.models.scoring import CriterionScore, MasterTrackerEntry, ScoringRecord
from pbportal.repositories.base import ScoringStore
from pbportal.services.snowflake import get_snowflake_connection

logger = logging.getLogger(__name__)


class SnowflakeScoringStore(ScoringStore):
    """ScoringStore backed by Snowflake tables."""

    def __init__(self, conn=None):
        self._conn = conn

    @property
    def conn(self):
        if self._conn is None:
            try:
                self._conn = get_snowflake_connection()
            except SnowflakeError as e:
                raise DatabaseConnectionException(f"Failed to connect to Snowflake: {e}") from e
        return self._conn

    @staticmethod
    def _rollback(conn) -> None:
        try:
            conn.rollback()
        except SnowflakeError as e:
            logger.error(f"Snowflake rollback failed: {e}")

    @contextmanager
    def _cursor(self, commit: bool = False) -> Generator[Any, None, None]:
        """Cursor with commit/rollback and Snowflake → PersistenceError translation."""
        conn = self.conn
        try:
            cur = conn.cursor()
        except SnowflakeError as e:
            logger.error(f"Snowflake cursor unavailable: {e}")
            raise DatabaseConnectionException(f"Snowflake connection unusable: {e}") from e

        try:
            if commit:
                cur.execute("BEGIN")
            yield cur
            if commit:
                conn.commit()
        except SnowflakeError as e:
            logger.error(f"Snowflake operation failed: {e}")
            if commit:
                self._rollback(conn)
            raise PersistenceError(f"Snowflake error: {e}") from e
        finally:
            try:
                cur.close()
            except SnowflakeError as e:
                logger.warning(f"Snowflake cursor close failed: {e}")

    @staticmethod
    def _rows(cur) -> List[Dict[str, Any]]:
        columns = [col[0].lower() for col in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]

    @staticmethod
    def _load_json(value: Any, default: Any) -> Any:
        if value is None:
            return default
        if isinstance(value, (dict, list)):
            return value
        return json.loads(value)

    # =====================================================================
    # scoring_records
    # =====================================================================

    def get_record(self, application_id: str, scorer_id: str) -> Optional[ScoringRecord]:
        sql = """
        SELECT application_id, scorer_id, scorer_name, scores, notes,
               is_final, total, created_at, updated_at
        FROM scoring_records
        WHERE application_id = %s AND scorer_id = %s
        """
        with self._cursor() as cur:
            cur.execute(sql, (application_id, scorer_id))
            rows = self._rows(cur)
        if not rows:
            return None
        row = rows[0]
        return ScoringRecord(
            application_id=row["application_id"],
            scorer_id=row["scorer_id"],
            scorer_name=row.get("scorer_name") or "",
            scores=self._load_json(row.get("scores"), {}),
            notes=self._load_json(row.get("notes"), {}),
            is_final=bool(row.get("is_final")),
            total=float(row.get("total") or 0.0),
            created_at=self.normalize_timestamp(row.get("created_at")),
            updated_at=self.normalize_timestamp(row.get("updated_at")),
        )

    def upsert_record(self, record: ScoringRecord) -> None:
        """Upsert one row into scoring_records (MERGE by application_id+scorer_id)."""
        sql = """
        MERGE INTO scoring_records t
        USING (
            SELECT %s AS application_id, %s AS scorer_id, %s AS scorer_name,
                   PARSE_JSON(%s) AS scores, PARSE_JSON(%s) AS notes,
                   %s AS is_final, %s AS total, %s AS created_at, %s AS updated_at
        ) s
        ON t.application_id = s.application_id AND t.scorer_id = s.scorer_id
        WHEN MATCHED THEN UPDATE SET
            scorer_name = s.scorer_name,
            scores = s.scores,
            notes = s.notes,
            is_final = s.is_final,
            total = s.total,
            created_at = s.created_at,
            updated_at = s.updated_at
        WHEN NOT MATCHED THEN INSERT (
            application_id, scorer_id, scorer_name, scores, notes,
            is_final, total, created_at, updated_at
        ) VALUES (
            s.application_id, s.scorer_id, s.scorer_name, s.scores, s.notes,
            s.is_final, s.total, s.created_at, s.updated_at
        )
        """
        params = (
            record.application_id, record.scorer_id, record.scorer_name,
            json.dumps(record.scores), json.dumps(record.notes),
            record.is_final, record.total, record.created_at, record.updated_at,
        )
        with self._cursor(commit=True) as cur:
            cur.execute(sql, params)
        logger.info(f"Upserted scoring record {record.application_id}/{record.scorer_id}")

    def delete_records_by_scorer(self, scorer_id: str) -> int:
        """Delete all records and projections for a scorer in one transaction."""
        with self._cursor(commit=True) as cur:
            cur.execute("DELETE FROM scoring_records WHERE scorer_id = %s", (scorer_id,))
            removed = cur.rowcount or 0
            cur.execute("DELETE FROM master_tracker WHERE scorer_id = %s", (scorer_id,))
        logger.info(f"Deleted {removed} scoring records for scorer {scorer_id}")
        return removed

    # =====================================================================
    # master_tracker
    # =====================================================================

    def upsert_projection(self, entry: MasterTrackerEntry) -> None:
        sql = """
        MERGE INTO master_tracker t
        USING (
            SELECT %s AS application_id, %s AS scorer_id, %s AS scorer_name,
                   %s AS total, PARSE_JSON(%s) AS scores, %s AS updated_at
        ) s
        ON t.application_id = s.application_id AND t.scorer_id = s.scorer_id
        WHEN MATCHED THEN UPDATE SET
            scorer_name = s.scorer_name,
            total = s.total,
            scores = s.scores,
            updated_at = s.updated_at
        WHEN NOT MATCHED THEN INSERT (
            application_id, scorer_id, scorer_name, total, scores, updated_at
        ) VALUES (
            s.application_id, s.scorer_id, s.scorer_name, s.total, s.scores, s.updated_at
        )
        """
        params = (
            entry.application_id, entry.scorer_id, entry.scorer_name,
            entry.total, json.dumps([s.model_dump() for s in entry.scores]), entry.timestamp,
        )
        with self._cursor(commit=True) as cur:
            cur.execute(sql, params)

    def delete_projection(self, application_id: str, scorer_id: str) -> None:
        with self._cursor(commit=True) as cur:
            cur.execute(
                "DELETE FROM master_tracker WHERE application_id = %s AND scorer_id = %s",
                (application_id, scorer_id),
            )

    def list_projections(self, application_id: str) -> List[MasterTrackerEntry]:
        sql = """
        SELECT application_id, scorer_id, scorer_name, total, scores, updated_at
        FROM master_tracker
        WHERE application_id = %s
        ORDER BY scorer_id
        """
        with self._cursor() as cur:
            cur.execute(sql, (application_id,))
            rows = self._rows(cur)
        return [
            MasterTrackerEntry(
                application_id=row["application_id"],
                scorer_id=row["scorer_id"],
                scorer_name=row.get("scorer_name") or "",
                total=float(row.get("total") or 0.0),
                timestamp=self.normalize_timestamp(row.get("updated_at")),
                scores=[CriterionScore(**s) for s in self._load_json(row.get("scores"), [])],
            )
            for row in rows
        ]

    # =====================================================================
    # reach_declarations
    # =====================================================================

    def get_reach_declaration(self, application_id: str) -> Optional[ReachDeclaration]:
        sql = """
        SELECT application_id, reach_figure, evidence_url, evidence_file_path,
               declaration_confirmed, tier, coefficient_factor, audit_flag,
               admin_notes, submitted_at, updated_at
        FROM reach_declarations
        WHERE application_id = %s
        """
        with self._cursor() as cur:
            cur.execute(sql, (application_id,))
            rows = self._rows(cur)
        if not rows:
            return None
        row = rows[0]
        row["audit_flag"] = bool(row.get("audit_flag"))
        row["submitted_at"] = self.normalize_timestamp(row.get("submitted_at"))
        row["updated_at"] = self.normalize_timestamp(row.get("updated_at"))
        return ReachDeclaration(**row)

    def upsert_reach_declaration(self, declaration: ReachDeclaration) -> None:
        """MERGE applicant columns; audit columns are only set on insert."""
        sql = """
        MERGE INTO reach_declarations t
        USING (
            SELECT %s AS application_id, %s AS reach_figure, %s AS evidence_url,
                   %s AS evidence_file_path, %s AS declaration_confirmed, %s AS tier,
                   %s AS coefficient_factor, %s AS audit_flag, %s AS admin_notes,
                   %s AS submitted_at, %s AS updated_at
        ) s
        ON t.application_id = s.application_id
        WHEN MATCHED THEN UPDATE SET
            reach_figure = s.reach_figure,
            evidence_url = s.evidence_url,
            evidence_file_path = s.evidence_file_path,
            declaration_confirmed = s.declaration_confirmed,
            tier = s.tier,
            coefficient_factor = s.coefficient_factor,
            submitted_at = s.submitted_at,
            updated_at = s.updated_at
        WHEN NOT MATCHED THEN INSERT (
            application_id, reach_figure, evidence_url, evidence_file_path,
            declaration_confirmed, tier, coefficient_factor, audit_flag,
            admin_notes, submitted_at, updated_at
        ) VALUES (
            s.application_id, s.reach_figure, s.evidence_url, s.evidence_file_path,
            s.declaration_confirmed, s.tier, s.coefficient_factor, s.audit_flag,
            s.admin_notes, s.submitted_at, s.updated_at
        )
        """
        params = (
            declaration.application_id, declaration.reach_figure, declaration.evidence_url,
            declaration.evidence_file_path, declaration.declaration_confirmed,
            declaration.tier.value, declaration.coefficient_factor, declaration.audit_flag,
            declaration.admin_notes, declaration.submitted_at, declaration.updated_at,
        )
        with self._cursor(commit=True) as cur:
            cur.execute(sql, params)
        logger.info(f"Upserted reach declaration for {declaration.application_id}")

    def update_reach_audit(
        self,
        application_id: str,
        audit_flag: bool,
        admin_notes: Optional[str],
    ) -> bool:
        sql = """
        UPDATE reach_declarations
        SET audit_flag = %s, admin_notes = %s
        WHERE application_id = %s
        """
        with self._cursor(commit=True) as cur:
            cur.execute(sql, (audit_flag, admin_notes, application_id))
            updated = cur.rowcount or 0
        return updated > 0
