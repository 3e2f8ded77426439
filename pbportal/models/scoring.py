from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from pbportal.models.enumerations import ScoringStatus


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Criterion(BaseModel):
    """
    One named scoring criterion shared by every scorer in a round.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable criterion identifier")
    name: str = Field(..., min_length=1, description="Display name")
    weight: float = Field(..., gt=0, description="Contribution of a maximum score to the total")
    guidance: str = Field(default="", description="Guidance shown to scorers")
    details: str = Field(default="", description="Per-level scoring descriptors")


class CriterionCatalog(BaseModel):
    """
    Ordered, non-empty set of criteria for a scoring cycle.
    """

    model_config = ConfigDict(frozen=True)

    criteria: List[Criterion] = Field(..., min_length=1)

    @field_validator("criteria")
    @classmethod
    def validate_unique_ids(cls, v: List[Criterion]) -> List[Criterion]:
        ids = [c.id for c in v]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate criterion ids: {', '.join(duplicates)}")
        return v

    @property
    def ids(self) -> List[str]:
        return [c.id for c in self.criteria]

    @property
    def total_weight(self) -> float:
        return sum(c.weight for c in self.criteria)

    def get(self, criterion_id: str) -> Optional[Criterion]:
        for criterion in self.criteria:
            if criterion.id == criterion_id:
                return criterion
        return None


class ScoringRecord(BaseModel):
    """
    One scorer's marks for one application, keyed by (application_id, scorer_id).

    ``total`` is always recomputed by the engine on save; callers never set it.
    """

    application_id: str = Field(..., min_length=1)
    scorer_id: str = Field(..., min_length=1)
    scorer_name: str = Field(default="")
    scores: Dict[str, int] = Field(default_factory=dict, description="criterion id -> raw score")
    notes: Dict[str, str] = Field(default_factory=dict, description="criterion id -> scorer note")
    is_final: bool = Field(default=False)
    total: float = Field(default=0.0, description="Weighted total (derived)")
    created_at: Optional[datetime] = Field(
        default=None,
        description="First persisted save; None for a synthesized empty record",
    )
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.application_id, self.scorer_id)

    @property
    def status(self) -> ScoringStatus:
        if self.is_final:
            return ScoringStatus.FINAL
        if self.created_at is None:
            return ScoringStatus.EMPTY
        return ScoringStatus.DRAFT


class CriterionScore(BaseModel):
    id: str
    score: int
    notes: str = ""


class MasterTrackerEntry(BaseModel):
    """
    Derived projection of a finalized ScoringRecord. Never edited directly.
    """

    application_id: str
    scorer_id: str
    scorer_name: str = ""
    total: float
    timestamp: datetime
    scores: List[CriterionScore] = Field(default_factory=list)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.application_id, self.scorer_id)

    @classmethod
    def from_record(cls, record: ScoringRecord, catalog: CriterionCatalog) -> "MasterTrackerEntry":
        """Project a finalized record; per-criterion rows follow catalog order."""
        return cls(
            application_id=record.application_id,
            scorer_id=record.scorer_id,
            scorer_name=record.scorer_name,
            total=record.total,
            timestamp=record.updated_at,
            scores=[
                CriterionScore(
                    id=criterion_id,
                    score=record.scores.get(criterion_id, 0),
                    notes=record.notes.get(criterion_id, ""),
                )
                for criterion_id in catalog.ids
            ],
        )


class ScorerStatus(BaseModel):
    scorer_id: str
    scorer_name: str = ""
    status: ScoringStatus
    total: Optional[float] = None


class ApplicationScoringSummary(BaseModel):
    """
    Committee progress for one application (scoring monitor view).
    """

    application_id: str
    expected_count: int = Field(..., ge=0)
    finalized_count: int = Field(..., ge=0)
    percent_complete: int = Field(..., ge=0, le=100)
    average_total: Optional[float] = None
    meets_threshold: bool = False
    scorers: List[ScorerStatus] = Field(default_factory=list)
