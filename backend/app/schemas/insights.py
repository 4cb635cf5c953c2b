from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InsightPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")


# Dashboard analysis


class SkillGap(InsightPayload):
    name: str = Field(min_length=1)
    you: float = Field(ge=0, le=100)
    market: float = Field(ge=0, le=100)


class Deadline(InsightPayload):
    title: str = Field(min_length=1)
    date: str
    time: str = ""
    urgent: bool = False


class DailyIntel(InsightPayload):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)


RadarSubject = Literal["CGPA", "Skills", "Exp", "Extra", "Logic", "Comm"]


class RadarPoint(InsightPayload):
    subject: RadarSubject
    A: float = Field(ge=0, le=150)
    fullMark: float = 150


class DashboardAnalysisPayload(InsightPayload):
    # Range-checked by the validator, which derives a score when it is unusable.
    confidence_score: Optional[float] = None
    human_review_needed: bool = True
    skill_gaps: List[SkillGap] = Field(min_length=1)
    deadlines: List[Deadline]
    daily_intel: DailyIntel
    radar_analysis: List[RadarPoint] = Field(min_length=1)

    @field_validator("confidence_score", mode="before")
    @classmethod
    def drop_non_numeric_confidence(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value

    @field_validator("radar_analysis")
    @classmethod
    def unique_radar_subjects(cls, value: List[RadarPoint]) -> List[RadarPoint]:
        subjects = [point.subject for point in value]
        if len(subjects) != len(set(subjects)):
            raise ValueError("radar subjects must not repeat")
        return value


# Career roadmaps (selected-path contract)


class RoadmapResource(InsightPayload):
    title: str
    url: str


class RoadmapMilestone(InsightPayload):
    day: int = Field(ge=1)
    title: str = ""
    task: str = Field(min_length=1)
    xp: int = Field(ge=0)
    status: Literal["pending", "in_progress", "completed"] = "pending"
    milestone_type: Literal["Learning", "Project", "Quiz"] = "Learning"
    subtopics: List[str] = Field(default_factory=list)
    resources: List[RoadmapResource] = Field(default_factory=list)


class Roadmap(InsightPayload):
    type: Literal["fast_track", "growth", "mastery"]
    duration: str = Field(min_length=1)
    total_xp: int = Field(ge=0)
    milestones: List[RoadmapMilestone] = Field(min_length=1)
    description: str = ""


class CareerRoadmapSetPayload(InsightPayload):
    roadmaps: List[Roadmap] = Field(min_length=1)


# Career roadmaps (profile-only tiered contract)


class TierMilestone(InsightPayload):
    day: int = Field(ge=1)
    task: str = Field(min_length=1)
    xp: int = Field(ge=0)
    status: Literal["pending", "in_progress", "completed"] = "pending"


class RoadmapTier(InsightPayload):
    title: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    description: str = ""
    total_xp: int = Field(ge=0)
    milestones: List[TierMilestone] = Field(min_length=1)


class CareerRoadmapTiersPayload(InsightPayload):
    fast_track: RoadmapTier
    growth: RoadmapTier
    mastery: RoadmapTier


# Career discovery


class CareerOption(InsightPayload):
    title: str = Field(min_length=1)
    match_score: float = Field(ge=0, le=100)
    reason: str = ""
    market_outlook: Literal["High", "Medium", "Low"]

    @field_validator("market_outlook", mode="before")
    @classmethod
    def normalize_outlook(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


class CareerDiscoveryOptionsPayload(InsightPayload):
    options: List[CareerOption] = Field(min_length=1)


# ROI analysis


class RoiCostBreakdown(InsightPayload):
    tuition: float = Field(ge=0)
    rent: float = Field(ge=0)
    food: float = Field(default=0.0, ge=0)
    total: float = Field(ge=0)


class RoiAlternative(InsightPayload):
    country: Optional[str] = None
    tuition: float = Field(ge=0)
    rent: float = Field(ge=0)
    total: float = Field(ge=0)
    reason: str = ""


class RoiAnalysisPayload(InsightPayload):
    original: RoiCostBreakdown
    alternative: RoiAlternative
    roi_percentage: str = Field(min_length=1)
    break_even_months: float = Field(ge=0)
    starting_salary: float = Field(ge=0)
    risk_score: float = Field(ge=0, le=100)
    analysis_text: str = ""

    @field_validator("roi_percentage", mode="before")
    @classmethod
    def format_percentage(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return f"{value:g}%"
        return value


# Translation


class TranslationPayload(InsightPayload):
    translatedText: str = Field(min_length=1)


# Envelope


class InsightEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    origin: Literal["model", "fallback", "passthrough"]
    confidence: float = Field(ge=0, le=100)
    human_review_needed: bool
    payload: dict[str, Any]
    attempts: int = Field(default=0, ge=0)

    def to_response(self) -> dict[str, Any]:
        body = dict(self.payload)
        body.update(
            {
                "kind": self.kind,
                "origin": self.origin,
                "confidence": self.confidence,
                "human_review_needed": self.human_review_needed,
            }
        )
        return body


class InsightKindOut(BaseModel):
    kind: str
    required_parameters: List[str] = Field(default_factory=list)
    requires_profile: bool
    requires_persistence: bool
