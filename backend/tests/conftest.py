from pathlib import Path
import copy
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.core.config import Settings
from app.core.ratelimit import insight_rate_limiter
from app.services.ai_errors import UpstreamUnavailable
from app.services.ai_orchestrator import InsightOrchestrator
from app.services.llm_client import RawCompletion


VALID_PAYLOADS = {
    "dashboard-analysis": {
        "confidence_score": 88,
        "human_review_needed": False,
        "skill_gaps": [
            {"name": "Python", "you": 60, "market": 85},
            {"name": "SQL", "you": 40, "market": 75},
        ],
        "deadlines": [
            {"title": "GATE registration", "date": "2026-11-01", "time": "17:00", "urgent": True},
        ],
        "daily_intel": {"title": "Cloud demand rising", "content": "Entry-level cloud roles grew this quarter."},
        "radar_analysis": [
            {"subject": "CGPA", "A": 120, "fullMark": 150},
            {"subject": "Skills", "A": 95, "fullMark": 150},
            {"subject": "Exp", "A": 40, "fullMark": 150},
            {"subject": "Extra", "A": 70, "fullMark": 150},
            {"subject": "Logic", "A": 110, "fullMark": 150},
            {"subject": "Comm", "A": 85, "fullMark": 150},
        ],
    },
    "career-roadmap-set": {
        "roadmaps": [
            {
                "type": "fast_track",
                "duration": "2 Months",
                "total_xp": 1500,
                "description": "Crash course.",
                "milestones": [
                    {
                        "day": 1,
                        "title": "Setup",
                        "task": "Install Python and VS Code",
                        "xp": 50,
                        "status": "pending",
                        "milestone_type": "Learning",
                        "subtopics": ["venv", "pip", "editor"],
                        "resources": [{"title": "Python docs", "url": "https://docs.python.org"}],
                    }
                ],
            }
        ]
    },
    "career-roadmap-tiers": {
        tier: {
            "title": f"{tier} plan",
            "duration": duration,
            "description": "Plan.",
            "total_xp": 2000,
            "milestones": [{"day": 1, "task": "Build a Todo App in React", "xp": 50, "status": "pending"}],
        }
        for tier, duration in (("fast_track", "2 Months"), ("growth", "6 Months"), ("mastery", "1 Year"))
    },
    "career-discovery-options": {
        "options": [
            {"title": "Data Analyst", "match_score": 82, "reason": "Strong SQL.", "market_outlook": "High"},
            {"title": "Backend Developer", "match_score": 74, "reason": "Python skills.", "market_outlook": "medium"},
        ]
    },
    "roi-analysis": {
        "original": {"tuition": 15000, "rent": 9000, "food": 3000, "total": 27000},
        "alternative": {"country": "Poland", "tuition": 4000, "rent": 5000, "total": 12000, "reason": "Cheaper."},
        "roi_percentage": "150%",
        "break_even_months": 30,
        "starting_salary": 52000,
        "risk_score": 35,
        "analysis_text": "Germany exceeds the budget; Poland is comparable.",
    },
    "translation": {"translatedText": "नमस्ते दुनिया"},
}

PROFILE = {
    "full_name": "Asha Rao",
    "marks_10th": "92%",
    "marks_12th": 88,
    "skills": ["Python", "SQL"],
    "interests": "data, cloud",
    "career_goal": "Data Engineer",
}


class FakeCompletionClient:
    provider = "groq"
    model = "fake-model"

    def __init__(self, responses=None, *, configured: bool = True):
        self.responses = list(responses or [])
        self.configured = configured
        self.calls: list[dict] = []

    def is_configured(self) -> bool:
        return self.configured

    def ensure_configured(self) -> None:
        if not self.configured:
            raise UpstreamUnavailable("GROQ_API_KEY is missing in environment variables.")

    async def complete(self, system_prompt, user_prompt, *, temperature, max_tokens, expect_json=True):
        self.calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "expect_json": expect_json,
            }
        )
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return RawCompletion(text=item, model=self.model)


class RecordingStore:
    def __init__(self):
        self.saved: list[tuple[dict, object]] = []

    def save(self, parameters, envelope):
        self.saved.append((parameters, envelope))
        return "record-1"


def make_settings(**overrides) -> Settings:
    values = {"groq_api_key": "test-key", "database_url": None, "llm_provider": "groq"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def valid_payload():
    def _payload(kind: str) -> dict:
        return copy.deepcopy(VALID_PAYLOADS[kind])

    return _payload


@pytest.fixture
def profile_body():
    return copy.deepcopy(PROFILE)


@pytest.fixture
def make_orchestrator():
    def _make(responses=None, *, configured: bool = True, store=None):
        client = FakeCompletionClient(responses, configured=configured)
        return InsightOrchestrator(make_settings(), client, store), client

    return _make


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    insight_rate_limiter.clear_prefix("")
    yield
    insight_rate_limiter.clear_prefix("")


@pytest.fixture
def recording_store():
    return RecordingStore()


@pytest.fixture
def settings_factory():
    return make_settings
