from __future__ import annotations

import logging
from typing import Any, Callable, get_args

from app.schemas.insights import InsightEnvelope, RadarSubject
from app.services.ai_errors import SchemaViolation, UnparsableResponse, UpstreamTimeout
from app.services.ai_validator import SchemaDescriptor, ValidatedInsight
from app.services.profile_normalizer import Profile

logger = logging.getLogger(__name__)

DEFAULT_REVIEW_THRESHOLD = 70
RETRYABLE_ERRORS = (UpstreamTimeout, UnparsableResponse, SchemaViolation)
DEFAULT_FOCUS_SKILLS = ["Problem Solving", "Communication", "Programming Fundamentals"]
RADAR_SUBJECTS = list(get_args(RadarSubject))


def should_retry(error: Exception, *, retried: bool) -> bool:
    # UpstreamError is never retried.
    return not retried and isinstance(error, RETRYABLE_ERRORS)


def _focus_skills(profile: Profile | None) -> list[str]:
    if profile and profile.skills:
        return profile.skills[:3]
    return list(DEFAULT_FOCUS_SKILLS)


def _goal(profile: Profile | None, parameters: dict[str, Any]) -> str:
    selected = parameters.get("selectedPath")
    if isinstance(selected, str) and selected.strip():
        return selected.strip()
    if profile and profile.career_goal:
        return profile.career_goal
    return "your target role"


def dashboard_fallback(profile: Profile | None, parameters: dict[str, Any]) -> dict[str, Any]:
    return {
        "confidence_score": 0,
        "human_review_needed": True,
        "skill_gaps": [{"name": skill, "you": 50, "market": 70} for skill in _focus_skills(profile)],
        "deadlines": [
            {
                "title": "Complete your profile details",
                "date": "This week",
                "time": "",
                "urgent": False,
            }
        ],
        "daily_intel": {
            "title": "Fresh insights are on the way",
            "content": "We could not generate a personalized analysis right now. Keep building one skill a day and check back shortly.",
        },
        "radar_analysis": [{"subject": subject, "A": 75, "fullMark": 150} for subject in RADAR_SUBJECTS],
    }


def _placeholder_milestones(goal: str, skills: list[str]) -> list[dict[str, Any]]:
    return [
        {"day": 1, "task": f"Write down why you want to pursue {goal} and list the roles you are targeting.", "xp": 50},
        {"day": 7, "task": f"Refresh the fundamentals of {skills[0]}.", "xp": 100},
        {"day": 14, "task": "Build and publish one small project that shows your progress.", "xp": 200},
    ]


def roadmap_set_fallback(profile: Profile | None, parameters: dict[str, Any]) -> dict[str, Any]:
    goal = _goal(profile, parameters)
    skills = _focus_skills(profile)
    tracks = [
        ("fast_track", "2 Months", "Intensive plan focused on core skills and a first project."),
        ("growth", "6 Months", "Balanced plan building strong fundamentals and projects."),
        ("mastery", "1 Year", "Comprehensive plan towards subject-matter depth."),
    ]
    roadmaps = []
    for track_type, duration, description in tracks:
        milestones = [
            {
                **milestone,
                "title": f"Step {index}",
                "status": "pending",
                "milestone_type": "Project" if index == 3 else "Learning",
                "subtopics": [],
                "resources": [],
            }
            for index, milestone in enumerate(_placeholder_milestones(goal, skills), start=1)
        ]
        roadmaps.append(
            {
                "type": track_type,
                "duration": duration,
                "total_xp": sum(milestone["xp"] for milestone in milestones),
                "milestones": milestones,
                "description": description,
            }
        )
    return {"roadmaps": roadmaps}


def roadmap_tiers_fallback(profile: Profile | None, parameters: dict[str, Any]) -> dict[str, Any]:
    goal = _goal(profile, parameters)
    skills = _focus_skills(profile)
    tiers = {
        "fast_track": ("Express Route", "2 Months", "Intensive plan to get job-ready quickly."),
        "growth": ("Standard Growth", "6 Months", "Balanced plan building strong fundamentals and projects."),
        "mastery": ("Deep Dive Mastery", "1 Year", "Comprehensive path towards subject-matter expertise."),
    }
    payload = {}
    for key, (title, duration, description) in tiers.items():
        milestones = [{**milestone, "status": "pending"} for milestone in _placeholder_milestones(goal, skills)]
        payload[key] = {
            "title": title,
            "duration": duration,
            "description": description,
            "total_xp": sum(milestone["xp"] for milestone in milestones),
            "milestones": milestones,
        }
    return payload


def discovery_fallback(profile: Profile | None, parameters: dict[str, Any]) -> dict[str, Any]:
    titles = ["Software Developer", "Data Analyst", "Product Analyst", "Cloud Support Engineer"]
    if profile and profile.career_goal and profile.career_goal not in titles:
        titles = [profile.career_goal] + titles[:3]
    return {
        "options": [
            {
                "title": title,
                "match_score": 50,
                "reason": "Placeholder suggestion while personalized matching is unavailable.",
                "market_outlook": "Medium",
            }
            for title in titles
        ]
    }


def roi_fallback(profile: Profile | None, parameters: dict[str, Any]) -> dict[str, Any]:
    return {
        "original": {"tuition": 0, "rent": 0, "food": 0, "total": 0},
        "alternative": {"country": None, "tuition": 0, "rent": 0, "total": 0, "reason": ""},
        "roi_percentage": "N/A",
        "break_even_months": 0,
        "starting_salary": 0,
        "risk_score": 50,
        "analysis_text": "We could not generate a reliable ROI analysis right now. Please try again shortly.",
    }


def translation_fallback(profile: Profile | None, parameters: dict[str, Any]) -> dict[str, Any]:
    return {"translatedText": str(parameters.get("text") or "").strip()}


def _sync_payload(
    payload: dict[str, Any],
    descriptor: SchemaDescriptor,
    *,
    confidence: float,
    review: bool,
) -> dict[str, Any]:
    synced = dict(payload)
    if descriptor.confidence_field:
        synced[descriptor.confidence_field] = confidence
    if descriptor.review_field:
        synced[descriptor.review_field] = review
    return synced


def finalize(
    kind: str,
    descriptor: SchemaDescriptor,
    insight: ValidatedInsight | None,
    *,
    fallback_payload: Callable[[], dict[str, Any]],
    attempts: int,
    review_threshold: int = DEFAULT_REVIEW_THRESHOLD,
) -> InsightEnvelope:
    if insight is None:
        logger.info("Serving fallback payload for %s after %d attempt(s)", kind, attempts)
        return InsightEnvelope(
            kind=kind,
            origin="fallback",
            confidence=0,
            human_review_needed=True,
            payload=_sync_payload(fallback_payload(), descriptor, confidence=0, review=True),
            attempts=attempts,
        )

    review = insight.human_review_needed or insight.confidence < review_threshold
    return InsightEnvelope(
        kind=kind,
        origin="model",
        confidence=insight.confidence,
        human_review_needed=review,
        payload=_sync_payload(insight.payload, descriptor, confidence=insight.confidence, review=review),
        attempts=attempts,
    )
