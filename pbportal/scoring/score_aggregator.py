# pbportal/scoring/score_aggregator.py
"""
Score Aggregator
----------------
Turns one scorer's raw per-criterion marks into a weighted total.

Formula:
    total = Σ over catalog criteria c of (score[c] / max_raw_score) × weight[c]

With the default catalog (weights sum to 100, raw scores 0-3) a fully scored
application totals 100. Criteria missing from ``scores`` count as 0 so a draft
can be aggregated at any point; ids that are not in the catalog are ignored.

Range checks on raw scores run only at finalize time (``validate``). No
rounding happens here; display formatting belongs to the caller.
"""
import structlog
from decimal import Decimal
from typing import List, Mapping

from pbportal.core.exceptions import ConfigError, ValidationError
from pbportal.models.scoring import CriterionCatalog
from pbportal.scoring.utils import as_decimal

logger = structlog.get_logger(__name__)


class ScoreAggregator:
    """Calculate the weighted total for a set of criterion scores."""

    def aggregate(
        self,
        scores: Mapping[str, int],
        catalog: CriterionCatalog,
        max_raw_score: int,
    ) -> float:
        """
        Args:
            scores: Mapping of criterion id → raw score.
            catalog: Criteria and weights for the current round.
            max_raw_score: Highest raw score a criterion can receive (e.g. 3).

        Returns:
            Weighted total as a float, unrounded.
        """
        max_raw = self._check_max_raw_score(max_raw_score)

        total = Decimal("0")
        for criterion in catalog.criteria:
            raw = scores.get(criterion.id, 0) or 0
            total += as_decimal(raw) * as_decimal(criterion.weight) / max_raw

        return float(total)

    def validate(
        self,
        scores: Mapping[str, int],
        catalog: CriterionCatalog,
        max_raw_score: int,
    ) -> None:
        """
        Reject raw scores outside [0, max_raw_score] for catalog criteria.

        Raises:
            ValidationError: naming every offending criterion id.
        """
        self._check_max_raw_score(max_raw_score)

        out_of_range: List[str] = []
        for criterion in catalog.criteria:
            if criterion.id not in scores:
                continue
            raw = scores[criterion.id]
            if isinstance(raw, bool) or not isinstance(raw, int) or not 0 <= raw <= max_raw_score:
                out_of_range.append(criterion.id)

        if out_of_range:
            logger.warning(
                "scores_out_of_range",
                criteria=out_of_range,
                max_raw_score=max_raw_score,
            )
            raise ValidationError(
                f"Scores must be integers in [0, {max_raw_score}]: {', '.join(out_of_range)}",
                fields=[f"scores.{criterion_id}" for criterion_id in out_of_range],
            )

    @staticmethod
    def _check_max_raw_score(max_raw_score: int) -> Decimal:
        if isinstance(max_raw_score, bool) or not isinstance(max_raw_score, int) or max_raw_score <= 0:
            raise ConfigError(f"max_raw_score must be a positive integer, got {max_raw_score!r}")
        return Decimal(max_raw_score)
