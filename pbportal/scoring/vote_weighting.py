# pbportal/scoring/vote_weighting.py
"""
Vote Weighting

adjusted = raw_votes × coefficient_factor, rounded half-up to one decimal

Digital votes are weighted when the coefficient is enabled. In-person votes
are weighted only when the round opts in (apply_to_in_person). Applications
without a reach declaration use factor 1.0. The stored factor is used as-is;
it is not recomputed from the reach figure.
"""
import structlog
from typing import Optional

from pbportal.core.exceptions import ValidationError
from pbportal.models.reach import CoefficientSettings, ReachDeclaration, VoteTally
from pbportal.scoring.utils import as_decimal, to_decimal

logger = structlog.get_logger(__name__)

BASELINE_FACTOR = 1.0


class VoteWeighting:
    """Apply reach coefficients to public vote counts."""

    def adjust(
        self,
        raw_votes: int,
        coefficient_factor: float,
        settings: CoefficientSettings,
        in_person: bool = False,
    ) -> float:
        if isinstance(raw_votes, bool) or not isinstance(raw_votes, int) or raw_votes < 0:
            raise ValidationError(
                f"raw_votes must be a non-negative integer, got {raw_votes!r}",
                fields=["raw_votes"],
            )

        factor = coefficient_factor
        if not settings.enabled or (in_person and not settings.apply_to_in_person):
            factor = BASELINE_FACTOR

        return float(to_decimal(as_decimal(raw_votes) * as_decimal(factor), places=1))

    def tally(
        self,
        application_id: str,
        digital_votes: int,
        in_person_votes: int,
        declaration: Optional[ReachDeclaration],
        settings: CoefficientSettings,
    ) -> VoteTally:
        factor = declaration.coefficient_factor if declaration else BASELINE_FACTOR

        adjusted_digital = self.adjust(digital_votes, factor, settings)
        adjusted_in_person = self.adjust(in_person_votes, factor, settings, in_person=True)
        total = float(to_decimal(as_decimal(adjusted_digital) + as_decimal(adjusted_in_person), places=1))

        logger.info(
            "votes_tallied",
            application_id=application_id,
            coefficient_factor=factor,
            digital_votes=digital_votes,
            in_person_votes=in_person_votes,
            total_adjusted_votes=total,
        )

        return VoteTally(
            application_id=application_id,
            coefficient_factor=factor,
            digital_votes=digital_votes,
            in_person_votes=in_person_votes,
            adjusted_digital_votes=adjusted_digital,
            adjusted_in_person_votes=adjusted_in_person,
            total_adjusted_votes=total,
        )
