"""
Scoring Monitor — committee progress per application
pbportal/services/monitor_service.py

percent_complete = round(100 × finalized / committee size), clamped to [0, 100]
average_total    = mean master tracker total over finalized committee members
meets_threshold  = average_total >= SCORING_THRESHOLD

Entries from scorers outside the committee are ignored. A member is final
only when their master tracker entry exists.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional

import structlog

from pbportal.models.enumerations import ScoringStatus
from pbportal.models.scoring import ApplicationScoringSummary, ScorerStatus
from pbportal.repositories.base import ScoringStore
from pbportal.scoring.utils import as_decimal, clamp, mean
from pbportal.services.configuration import ConfigurationProvider

logger = structlog.get_logger(__name__)


class ScoringMonitorService:
    def __init__(self, store: ScoringStore, config: ConfigurationProvider):
        self.store = store
        self.config = config

    def summarize(self, application_id: str, committee: Mapping[str, str]) -> ApplicationScoringSummary:
        """
        Args:
            application_id: Application being monitored.
            committee: scorer_id → display name of every expected scorer.
        """
        entries = {e.scorer_id: e for e in self.store.list_projections(application_id)}

        scorers = []
        finalized_totals = []
        for scorer_id, scorer_name in committee.items():
            entry = entries.get(scorer_id)
            if entry is not None:
                scorers.append(ScorerStatus(
                    scorer_id=scorer_id,
                    scorer_name=entry.scorer_name or scorer_name,
                    status=ScoringStatus.FINAL,
                    total=entry.total,
                ))
                finalized_totals.append(as_decimal(entry.total))
                continue

            # Final counts only once the tracker entry exists; a record left
            # final by a failed projection write reports as draft until retried
            record = self.store.get_record(application_id, scorer_id)
            status = ScoringStatus.EMPTY
            if record is not None:
                status = ScoringStatus.DRAFT if record.is_final else record.status
            scorers.append(ScorerStatus(
                scorer_id=scorer_id,
                scorer_name=scorer_name,
                status=status,
            ))

        expected = len(committee)
        finalized = len(finalized_totals)
        percent = Decimal("0")
        if expected:
            percent = clamp(Decimal(100 * finalized) / Decimal(expected))
        percent_complete = int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

        average_total: Optional[float] = None
        meets_threshold = False
        if finalized_totals:
            average_total = float(mean(finalized_totals))
            meets_threshold = average_total >= self.config.get_scoring_threshold()

        logger.info(
            "scoring_progress",
            application_id=application_id,
            finalized=finalized,
            expected=expected,
            average_total=average_total,
        )

        return ApplicationScoringSummary(
            application_id=application_id,
            expected_count=expected,
            finalized_count=finalized,
            percent_complete=percent_complete,
            average_total=average_total,
            meets_threshold=meets_threshold,
            scorers=scorers,
        )
