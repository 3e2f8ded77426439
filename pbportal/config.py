"""Engine configuration with comprehensive validation."""
from typing import Optional, Literal, List, Dict
from functools import lru_cache
from pydantic import Field, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# DEFAULT SCORING CRITERIA
# =============================================================================
# The published committee scoring matrix. Each criterion is scored 0-3 and
# weighted; weights sum to 100 so a fully scored application totals 100.
# Override with SCORING_CRITERIA_PATH (JSON: {"criteria": [...]}) per round.
# =============================================================================

SCORING_CRITERIA: List[Dict[str, object]] = [
    {
        "id": "overview_objectives",
        "name": "Project Overview & SMART Objectives",
        "guidance": "Assesses the clarity and quality of the project's overview and objectives.",
        "weight": 15,
    },
    {
        "id": "local_priorities",
        "name": "Alignment with Local Priorities",
        "guidance": "How well does the project connect to the identified needs and priorities of the local area?",
        "weight": 15,
    },
    {
        "id": "community_benefit",
        "name": "Community Benefit & Outcomes",
        "guidance": "Evaluates the project's potential benefits and the clarity of its short and long-term outcomes.",
        "weight": 10,
    },
    {
        "id": "activities_milestones",
        "name": "Activities, Milestones & Delivery Responsibilities",
        "guidance": "Assesses the coherence and feasibility of the activity plan, milestones, and role allocation.",
        "weight": 5,
    },
    {
        "id": "timeline_realism",
        "name": "Timeline & Scheduling Realism",
        "guidance": "How realistic and well-structured is the project's timeline?",
        "weight": 10,
    },
    {
        "id": "collaborations_partnerships",
        "name": "Collaborations & Partnerships",
        "guidance": "Evaluates the strength and clarity of partnerships that enhance reach and delivery.",
        "weight": 10,
    },
    {
        "id": "risk_management",
        "name": "Risk Management & Feasibility",
        "guidance": "Assesses the identification of key risks and the credibility of mitigations.",
        "weight": 5,
    },
    {
        "id": "budget_value",
        "name": "Budget Transparency & Value for Money",
        "guidance": "How transparent, justified, and proportionate is the project's budget?",
        "weight": 10,
    },
    {
        "id": "cross_area_specificity",
        "name": "Cross-Area Specificity & Venues (if applicable)",
        "guidance": "For cross-area projects, assesses the clarity of the budget and venue details for each area.",
        "weight": 10,
    },
    {
        "id": "marmot_wfg",
        "name": "Alignment with Marmot Principles & WFG Goals",
        "guidance": "How well does the project demonstrate practical alignment with these principles and goals?",
        "weight": 10,
    },
]


class Settings(BaseSettings):
    """Engine settings with production-grade validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "PB Portal Scoring Engine"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # Storage backend (selected once at process start)
    STORAGE_BACKEND: Literal["redis", "snowflake"] = "redis"

    # Redis (local key-value store)
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_KEY_PREFIX: str = Field(default="pbportal", min_length=1)

    # Snowflake (remote store)
    SNOWFLAKE_ACCOUNT: Optional[str] = None
    SNOWFLAKE_USER: Optional[str] = None
    SNOWFLAKE_PASSWORD: Optional[SecretStr] = None
    SNOWFLAKE_DATABASE: Optional[str] = None
    SNOWFLAKE_SCHEMA: Optional[str] = None
    SNOWFLAKE_WAREHOUSE: Optional[str] = None
    SNOWFLAKE_ROLE: Optional[str] = None

    # Scoring
    MAX_RAW_SCORE: int = Field(default=3, ge=1, le=100)
    SCORING_THRESHOLD: float = Field(default=50.0, ge=0)
    SCORING_CRITERIA_PATH: Optional[str] = None

    # Reach coefficient tiers: small [0, SMALL_MAX), medium [SMALL_MAX, MEDIUM_MAX), large [MEDIUM_MAX, inf)
    COEFFICIENT_ENABLED: bool = True
    COEFFICIENT_APPLY_TO_IN_PERSON: bool = False
    REACH_SMALL_MAX: int = Field(default=50, ge=1)
    REACH_MEDIUM_MAX: int = Field(default=500, ge=2)
    FACTOR_SMALL: float = Field(default=1.5, gt=0, le=5.0)
    FACTOR_MEDIUM: float = Field(default=1.2, gt=0, le=5.0)
    FACTOR_LARGE: float = Field(default=1.0, gt=0, le=5.0)

    @model_validator(mode="after")
    def validate_reach_boundaries(self):
        """Tier boundaries must be strictly increasing."""
        if self.REACH_MEDIUM_MAX <= self.REACH_SMALL_MAX:
            raise ValueError(
                f"REACH_MEDIUM_MAX ({self.REACH_MEDIUM_MAX}) must exceed "
                f"REACH_SMALL_MAX ({self.REACH_SMALL_MAX})"
            )
        return self

    @model_validator(mode="after")
    def validate_snowflake_settings(self):
        """Ensure the remote backend has credentials."""
        if self.STORAGE_BACKEND == "snowflake":
            missing = [
                name for name in (
                    "SNOWFLAKE_ACCOUNT", "SNOWFLAKE_USER", "SNOWFLAKE_PASSWORD",
                    "SNOWFLAKE_DATABASE", "SNOWFLAKE_SCHEMA", "SNOWFLAKE_WAREHOUSE",
                )
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"Snowflake backend requires: {', '.join(missing)}")
        return self

    @property
    def tier_table(self) -> List[Dict[str, object]]:
        """Coefficient tiers as plain rows, lowest reach first."""
        return [
            {"tier": "small", "min_reach": 0, "max_reach": self.REACH_SMALL_MAX,
             "factor": self.FACTOR_SMALL},
            {"tier": "medium", "min_reach": self.REACH_SMALL_MAX, "max_reach": self.REACH_MEDIUM_MAX,
             "factor": self.FACTOR_MEDIUM},
            {"tier": "large", "min_reach": self.REACH_MEDIUM_MAX, "max_reach": None,
             "factor": self.FACTOR_LARGE},
        ]

@lru_cache
def get_settings() -> Settings:
    return Settings()
