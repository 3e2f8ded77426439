"""
Redis Store — local key-value persistence
pbportal/repositories/redis_store.py

Key layout (prefix defaults to "pbportal"):
  {p}:score:{application_id}:{scorer_id}     ScoringRecord JSON
  {p}:scorer:{scorer_id}:apps                set of application ids scored
  {p}:tracker:{application_id}:{scorer_id}   MasterTrackerEntry JSON
  {p}:tracker-index:{application_id}         set of scorer ids with an entry
  {p}:reach:{application_id}                 hash: declaration (JSON of
                                             applicant fields), audit_flag,
                                             admin_notes

Id segments are percent-encoded, so ids containing ":" cannot collide.

Multi-key writes go through a MULTI/EXEC pipeline. The reach hash keeps the
admin-owned fields outside the applicant JSON so an applicant upsert cannot
touch them.
"""

import json
import logging
from contextlib import contextmanager
from typing import Generator, List, Optional
from urllib.parse import quote

import redis

from pbportal.core.exceptions import DatabaseConnectionException, PersistenceError
from pbportal.models.reach import APPLICANT_FIELDS, ReachDeclaration
from pbportal.models.scoring import MasterTrackerEntry, ScoringRecord
from pbportal.repositories.base import ScoringStore

logger = logging.getLogger(__name__)

DECLARATION_FIELD = "declaration"
AUDIT_FLAG_FIELD = "audit_flag"
ADMIN_NOTES_FIELD = "admin_notes"
WATCH_RETRIES = 5


def _segment(value: str) -> str:
    """Percent-encode an id so it cannot contain the key separator."""
    return quote(value, safe="")


class RedisScoringStore(ScoringStore):
    """ScoringStore backed by Redis strings, sets and hashes."""

    def __init__(self, client: redis.Redis, prefix: str = "pbportal"):
        self.client = client
        self.prefix = prefix

    # ---- keys ----

    def record_key(self, application_id: str, scorer_id: str) -> str:
        return f"{self.prefix}:score:{_segment(application_id)}:{_segment(scorer_id)}"

    def scorer_index_key(self, scorer_id: str) -> str:
        return f"{self.prefix}:scorer:{_segment(scorer_id)}:apps"

    def projection_key(self, application_id: str, scorer_id: str) -> str:
        return f"{self.prefix}:tracker:{_segment(application_id)}:{_segment(scorer_id)}"

    def tracker_index_key(self, application_id: str) -> str:
        return f"{self.prefix}:tracker-index:{_segment(application_id)}"

    def reach_key(self, application_id: str) -> str:
        return f"{self.prefix}:reach:{_segment(application_id)}"

    @contextmanager
    def _errors(self, action: str) -> Generator[None, None, None]:
        try:
            yield
        except redis.ConnectionError as e:
            logger.error(f"Redis unavailable during {action}: {e}")
            raise DatabaseConnectionException(f"Redis connection failed: {e}") from e
        except redis.RedisError as e:
            logger.error(f"Redis error during {action}: {e}")
            raise PersistenceError(f"Redis error during {action}: {e}") from e

    # ---- scoring records ----

    def get_record(self, application_id: str, scorer_id: str) -> Optional[ScoringRecord]:
        with self._errors("get_record"):
            data = self.client.get(self.record_key(application_id, scorer_id))
        if data:
            return ScoringRecord.model_validate_json(data)
        return None

    def upsert_record(self, record: ScoringRecord) -> None:
        with self._errors("upsert_record"):
            pipe = self.client.pipeline(transaction=True)
            pipe.set(self.record_key(*record.key), record.model_dump_json())
            pipe.sadd(self.scorer_index_key(record.scorer_id), record.application_id)
            pipe.execute()

    def delete_records_by_scorer(self, scorer_id: str) -> int:
        index_key = self.scorer_index_key(scorer_id)
        with self._errors("delete_records_by_scorer"):
            with self.client.pipeline(transaction=True) as pipe:
                for attempt in range(1, WATCH_RETRIES + 1):
                    try:
                        # A concurrent upsert_record touches the index and aborts EXEC
                        pipe.watch(index_key)
                        application_ids = sorted(pipe.smembers(index_key))
                        if not application_ids:
                            pipe.reset()
                            return 0

                        pipe.multi()
                        for application_id in application_ids:
                            pipe.delete(self.record_key(application_id, scorer_id))
                            pipe.delete(self.projection_key(application_id, scorer_id))
                            pipe.srem(self.tracker_index_key(application_id), scorer_id)
                        pipe.delete(index_key)
                        results = pipe.execute()
                        break
                    except redis.WatchError:
                        logger.warning(f"Scorer index {index_key} changed during reset (attempt {attempt})")
                else:
                    raise PersistenceError(
                        f"Reset of scorer {scorer_id} kept conflicting with concurrent writes"
                    )

        # Three commands per application; the first of each triple is the record delete
        removed = sum(int(results[i * 3] or 0) for i in range(len(application_ids)))
        logger.info(f"Deleted {removed} scoring records for scorer {scorer_id}")
        return removed

    # ---- master tracker ----

    def upsert_projection(self, entry: MasterTrackerEntry) -> None:
        with self._errors("upsert_projection"):
            pipe = self.client.pipeline(transaction=True)
            pipe.set(self.projection_key(*entry.key), entry.model_dump_json())
            pipe.sadd(self.tracker_index_key(entry.application_id), entry.scorer_id)
            pipe.execute()

    def delete_projection(self, application_id: str, scorer_id: str) -> None:
        with self._errors("delete_projection"):
            pipe = self.client.pipeline(transaction=True)
            pipe.delete(self.projection_key(application_id, scorer_id))
            pipe.srem(self.tracker_index_key(application_id), scorer_id)
            pipe.execute()

    def list_projections(self, application_id: str) -> List[MasterTrackerEntry]:
        with self._errors("list_projections"):
            scorer_ids = sorted(self.client.smembers(self.tracker_index_key(application_id)))
            if not scorer_ids:
                return []
            payloads = self.client.mget(
                [self.projection_key(application_id, scorer_id) for scorer_id in scorer_ids]
            )
        return [MasterTrackerEntry.model_validate_json(p) for p in payloads if p]

    # ---- reach declarations ----

    def get_reach_declaration(self, application_id: str) -> Optional[ReachDeclaration]:
        with self._errors("get_reach_declaration"):
            data = self.client.hgetall(self.reach_key(application_id))
        if not data or DECLARATION_FIELD not in data:
            return None
        fields = json.loads(data[DECLARATION_FIELD])
        fields["audit_flag"] = data.get(AUDIT_FLAG_FIELD) == "1"
        fields["admin_notes"] = data.get(ADMIN_NOTES_FIELD) or None
        return ReachDeclaration.model_validate(fields)

    def upsert_reach_declaration(self, declaration: ReachDeclaration) -> None:
        key = self.reach_key(declaration.application_id)
        payload = declaration.model_dump_json(include=set(APPLICANT_FIELDS))
        with self._errors("upsert_reach_declaration"):
            pipe = self.client.pipeline(transaction=True)
            pipe.hset(key, DECLARATION_FIELD, payload)
            # Admin-owned fields: only seeded when absent
            pipe.hsetnx(key, AUDIT_FLAG_FIELD, "1" if declaration.audit_flag else "0")
            if declaration.admin_notes:
                pipe.hsetnx(key, ADMIN_NOTES_FIELD, declaration.admin_notes)
            pipe.execute()

    def update_reach_audit(
        self,
        application_id: str,
        audit_flag: bool,
        admin_notes: Optional[str],
    ) -> bool:
        key = self.reach_key(application_id)
        with self._errors("update_reach_audit"):
            if not self.client.hexists(key, DECLARATION_FIELD):
                return False
            pipe = self.client.pipeline(transaction=True)
            pipe.hset(key, AUDIT_FLAG_FIELD, "1" if audit_flag else "0")
            if admin_notes:
                pipe.hset(key, ADMIN_NOTES_FIELD, admin_notes)
            else:
                pipe.hdel(key, ADMIN_NOTES_FIELD)
            pipe.execute()
        return True
