from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

LIST_FIELDS = ("skills", "interests", "strengths", "weaknesses")
NUMBER_FIELDS = ("marks_10th", "marks_12th", "cgpa", "budget")
TEXT_FIELDS = ("name", "current_year", "major", "target_country", "career_goal")

# Keys used by the different frontend forms for the same attribute.
FIELD_ALIASES = {
    "full_name": "name",
    "fullName": "name",
    "currentYear": "current_year",
    "year": "current_year",
    "targetCountry": "target_country",
    "country": "target_country",
    "careerGoal": "career_goal",
    "goal": "career_goal",
    "marks10th": "marks_10th",
    "marks12th": "marks_12th",
    "gpa": "cgpa",
    "userBudget": "budget",
}
MAX_LIST_ITEMS = 25
MAX_TEXT_CHARS = 200


class Profile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    current_year: str | None = None
    major: str | None = None
    marks_10th: float | None = None
    marks_12th: float | None = None
    cgpa: float | None = None
    skills: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    target_country: str | None = None
    budget: float | None = None
    career_goal: str | None = None

    def prompt_view(self) -> dict[str, Any]:
        """Only the attributes the student actually provided."""
        return {
            key: value
            for key, value in self.model_dump().items()
            if value not in (None, "", [])
        }


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    text = re.sub(r"\s+", " ", str(value)).strip()
    return text[:MAX_TEXT_CHARS] or None


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.strip().rstrip("%").replace(",", "").strip()
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def _as_list(value: Any) -> list[str]:
    if isinstance(value, str):
        entries: list[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        entries = list(value)
    else:
        return []
    out: list[str] = []
    for entry in entries:
        text = _as_text(entry)
        if text and text not in out:
            out.append(text)
    return out[:MAX_LIST_ITEMS]


def normalize_profile(raw: Any) -> Profile:
    if not isinstance(raw, dict):
        return Profile()

    source: dict[str, Any] = {}
    for key, value in raw.items():
        canonical = FIELD_ALIASES.get(str(key), str(key))
        # Canonical keys win over aliases.
        if canonical in source and canonical != key:
            continue
        source[canonical] = value

    values: dict[str, Any] = {}
    for key in LIST_FIELDS:
        values[key] = _as_list(source.get(key))
    for key in NUMBER_FIELDS:
        values[key] = _as_number(source.get(key))
    for key in TEXT_FIELDS:
        values[key] = _as_text(source.get(key))
    return Profile(**values)
