from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime
from typing import List, Optional

from pbportal.models.enumerations import ReachTier
from pbportal.models.scoring import utc_now


class TierBoundary(BaseModel):
    """
    One row of the coefficient table: reach in [min_reach, max_reach) -> factor.
    """

    model_config = ConfigDict(frozen=True)

    tier: ReachTier = Field(..., description="Tier name")
    min_reach: int = Field(..., ge=0, description="Inclusive lower bound")
    max_reach: Optional[int] = Field(
        default=None,
        description="Exclusive upper bound; None for the open-ended top tier",
    )
    factor: float = Field(..., gt=0, description="Vote multiplier for this tier")

    @model_validator(mode="after")
    def validate_bounds(self):
        if self.max_reach is not None and self.max_reach <= self.min_reach:
            raise ValueError(
                f"{self.tier.value}: max_reach ({self.max_reach}) must exceed "
                f"min_reach ({self.min_reach})"
            )
        return self

    def contains(self, reach_figure: int) -> bool:
        if reach_figure < self.min_reach:
            return False
        return self.max_reach is None or reach_figure < self.max_reach


class CoefficientSettings(BaseModel):
    """
    Ordered tier table partitioning [0, inf) plus the weighting switches.
    """

    model_config = ConfigDict(frozen=True)

    tiers: List[TierBoundary] = Field(..., min_length=1)
    enabled: bool = Field(default=True, description="Apply reach weighting to digital votes")
    apply_to_in_person: bool = Field(default=False, description="Also weight in-person votes")

    @model_validator(mode="after")
    def validate_partition(self):
        """Tiers must cover [0, inf) with no gaps or overlaps."""
        names = [t.tier for t in self.tiers]
        if len(set(names)) != len(names):
            raise ValueError("Each tier may appear only once")
        if self.tiers[0].min_reach != 0:
            raise ValueError("First tier must start at reach 0")
        for previous, current in zip(self.tiers, self.tiers[1:]):
            if previous.max_reach is None:
                raise ValueError(f"Only the last tier may be open-ended ({previous.tier.value} is not last)")
            if current.min_reach != previous.max_reach:
                raise ValueError(
                    f"Gap or overlap between {previous.tier.value} and {current.tier.value}: "
                    f"{previous.max_reach} != {current.min_reach}"
                )
        if self.tiers[-1].max_reach is not None:
            raise ValueError("Last tier must be open-ended")
        return self


class ReachEvidence(BaseModel):
    evidence_url: Optional[str] = None
    evidence_file_path: Optional[str] = None

    @property
    def has_evidence(self) -> bool:
        return bool((self.evidence_url or "").strip() or (self.evidence_file_path or "").strip())


# Fields written by the applicant path; audit_flag / admin_notes are admin-owned.
APPLICANT_FIELDS = frozenset({
    "application_id",
    "reach_figure",
    "evidence_url",
    "evidence_file_path",
    "declaration_confirmed",
    "tier",
    "coefficient_factor",
    "submitted_at",
    "updated_at",
})


class ReachDeclaration(BaseModel):
    """
    An application's self-reported reach and the coefficient derived from it.
    """

    application_id: str = Field(..., min_length=1)
    reach_figure: int = Field(..., ge=0)
    evidence_url: Optional[str] = None
    evidence_file_path: Optional[str] = None
    declaration_confirmed: bool = False
    tier: ReachTier
    coefficient_factor: float = Field(..., gt=0)
    audit_flag: bool = Field(default=False, description="Set by an administrator for review")
    admin_notes: Optional[str] = None
    submitted_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ReachSummary(BaseModel):
    """
    Read-only view of a submitted declaration (locked display mode).
    """

    application_id: str
    reach_figure: int
    tier: ReachTier
    coefficient_factor: float
    audit_flag: bool
    admin_notes: Optional[str] = None
    status: str


class CoefficientPreview(BaseModel):
    reach_figure: int
    tier: ReachTier
    coefficient_factor: float
    example_raw_votes: int = 100
    example_adjusted_votes: float


class VoteTally(BaseModel):
    """
    Raw and reach-adjusted public votes for one application.
    """

    application_id: str
    coefficient_factor: float = Field(..., gt=0)
    digital_votes: int = Field(..., ge=0)
    in_person_votes: int = Field(default=0, ge=0)
    adjusted_digital_votes: float
    adjusted_in_person_votes: float
    total_adjusted_votes: float
