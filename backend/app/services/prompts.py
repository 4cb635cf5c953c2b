from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from app.services.ai_errors import MissingParameter
from app.services.profile_normalizer import Profile

MAX_TRANSLATION_CHARS = 2000
JSON_ONLY_RULES = (
    "Respond with a single valid JSON object and nothing else. "
    "No markdown, no code fences, no commentary before or after the JSON."
)
STRICT_RETRY_SUFFIX = (
    "\n\nYOUR PREVIOUS REPLY WAS REJECTED: it was not valid JSON or it did not match the required shape. "
    "Return ONLY the JSON object described above. Every required key must be present with the exact "
    "name and type shown, numbers must be plain numbers inside the stated ranges, and required arrays "
    "must not be empty."
)


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str


def strict_retry_prompt(prompt: PromptPair) -> PromptPair:
    return PromptPair(system=prompt.system + STRICT_RETRY_SUFFIX, user=prompt.user)


def _require_profile(profile: Profile | None) -> Profile:
    if profile is None:
        raise MissingParameter("profile", "Profile data required.")
    return profile


def _require_text(parameters: dict[str, Any], key: str) -> str:
    value = parameters.get(key)
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise MissingParameter(key)
    return text


def _optional_text(parameters: dict[str, Any], key: str) -> str | None:
    value = parameters.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _require_positive_number(parameters: dict[str, Any], key: str) -> float:
    value = parameters.get(key)
    if value is None or value == "":
        raise MissingParameter(key)
    if isinstance(value, bool):
        raise MissingParameter(key, f"'{key}' must be a positive number.")
    try:
        number = float(str(value).replace(",", "").strip())
    except ValueError:
        raise MissingParameter(key, f"'{key}' must be a positive number.") from None
    if number <= 0:
        raise MissingParameter(key, f"'{key}' must be a positive number.")
    return number


def _user_message(task: str, **context: Any) -> str:
    return json.dumps({"task": task, **context}, ensure_ascii=False)


def build_dashboard_prompt(profile: Profile | None, parameters: dict[str, Any]) -> PromptPair:
    profile = _require_profile(profile)
    language = _optional_text(parameters, "language") or "en"
    system = f"""You are the "Orbis Strategic Command AI". Analyze the student's profile and produce a dashboard analysis.

Write all human-readable text in this language (ISO code): {language}. Keep programming languages and technical terms (CGPA, ROI) in English when that is common in the target language.

Output shape:
{{
  "confidence_score": number 0-100 (how sure you are of this analysis),
  "human_review_needed": boolean,
  "skill_gaps": [ {{ "name": string, "you": number 0-100, "market": number 0-100 }} ] (3-6 items, at least 1),
  "deadlines": [ {{ "title": string, "date": string, "time": string, "urgent": boolean }} ],
  "daily_intel": {{ "title": string, "content": string }},
  "radar_analysis": [ {{ "subject": one of "CGPA" | "Skills" | "Exp" | "Extra" | "Logic" | "Comm", "A": number 0-150, "fullMark": 150 }} ] (all 6 subjects)
}}

{JSON_ONLY_RULES}"""
    user = _user_message("Generate dashboard analysis.", profile=profile.prompt_view())
    return PromptPair(system=system, user=user)


def build_roadmap_set_prompt(profile: Profile | None, parameters: dict[str, Any]) -> PromptPair:
    profile = _require_profile(profile)
    path = _optional_text(parameters, "selectedPath") or profile.career_goal or "the career goal in their profile"
    system = f"""You are an expert career strategist. The student has chosen the career path: "{path}".

Generate 3 distinct roadmaps for this path:
1. "fast_track" (2 Months): intense, crash-course style, MVPs and core skills.
2. "growth" (6 Months): balanced industry pace, deep understanding.
3. "mastery" (1 Year): academic depth, research and advanced specializations.

Output shape:
{{
  "roadmaps": [
    {{
      "type": "fast_track" | "growth" | "mastery",
      "duration": string,
      "total_xp": integer (approx 1000-5000),
      "description": string (high-level summary of the approach),
      "milestones": [
        {{
          "day": integer >= 1,
          "title": string,
          "task": string,
          "xp": integer >= 0,
          "status": "pending",
          "milestone_type": "Learning" | "Project" | "Quiz",
          "subtopics": [string] (3-5 items),
          "resources": [ {{ "title": string, "url": string }} ] (2-3 items)
        }}
      ] (at least 1)
    }}
  ] (exactly 3, one per type)
}}

Tone: strategic and mission-oriented. Tasks must be actionable and specific.
{JSON_ONLY_RULES}"""
    user = _user_message(
        "Generate career roadmaps.",
        selected_path=path,
        profile=profile.prompt_view(),
    )
    return PromptPair(system=system, user=user)


def build_roadmap_tiers_prompt(profile: Profile | None, parameters: dict[str, Any]) -> PromptPair:
    profile = _require_profile(profile)
    system = f"""You are the "Orbis Career Engine". Analyze the student's profile and generate 3 distinct career roadmaps that help them reach their career goal.

Output shape:
{{
  "fast_track": {{
    "title": string, "duration": "2 Months", "description": string, "total_xp": integer,
    "milestones": [ {{ "day": integer >= 1, "task": string, "xp": integer >= 0, "status": "pending" }} ] (5-7 items)
  }},
  "growth": {{ same fields, "duration": "6 Months", 10-12 milestones }},
  "mastery": {{ same fields, "duration": "1 Year", 15 or more milestones }}
}}

Tasks must be actionable and specific (e.g. "Build a Todo App in React", "Complete Data Structures Module 1").
{JSON_ONLY_RULES}"""
    user = _user_message("Generate career roadmaps.", profile=profile.prompt_view())
    return PromptPair(system=system, user=user)


def build_discovery_prompt(profile: Profile | None, parameters: dict[str, Any]) -> PromptPair:
    profile = _require_profile(profile)
    system = f"""You are a career discovery advisor. Analyze the student profile and suggest 4 optimal career paths.

Output shape:
{{
  "options": [
    {{
      "title": string (job title),
      "match_score": number 0-100,
      "reason": string (why this fits their skills and grades),
      "market_outlook": "High" | "Medium" | "Low"
    }}
  ] (4 items)
}}

{JSON_ONLY_RULES}"""
    user = _user_message("Suggest career options.", profile=profile.prompt_view())
    return PromptPair(system=system, user=user)


def build_roi_prompt(profile: Profile | None, parameters: dict[str, Any]) -> PromptPair:
    country = _require_text(parameters, "targetCountry")
    budget = _require_positive_number(parameters, "userBudget")
    system = f"""You are a Financial Career Strategist for "Orbis".
Analyze the student's study-abroad target: {country}, with a yearly budget of {budget:,.0f} USD.
If the target is over budget (allow a 20% buffer), recommend a cheaper alternative country with similar academic quality.

Output shape (all money values are yearly amounts in USD):
{{
  "original": {{ "tuition": number, "rent": number, "food": number, "total": number }},
  "alternative": {{ "country": string or null (null when the original fits the budget), "tuition": number, "rent": number, "total": number, "reason": string }},
  "roi_percentage": string (e.g. "150%"),
  "break_even_months": number (months to pay back the cost from an average starting salary),
  "starting_salary": number (average starting salary in USD),
  "risk_score": number 0-100 (100 is high risk),
  "analysis_text": string (brief strategic advice, max 2 sentences)
}}

{JSON_ONLY_RULES}"""
    user = _user_message(
        f"Analyze ROI for studying in {country} with a budget of {budget:,.0f} USD.",
        target_country=country,
        budget_usd=budget,
    )
    return PromptPair(system=system, user=user)


def build_translation_prompt(profile: Profile | None, parameters: dict[str, Any]) -> PromptPair:
    text = _require_text(parameters, "text")
    target_lang = _require_text(parameters, "targetLang")
    if len(text) > MAX_TRANSLATION_CHARS:
        raise MissingParameter("text", f"'text' must be at most {MAX_TRANSLATION_CHARS} characters.")
    system = (
        f"You are a professional translator. Translate the user's text into {target_lang}. "
        'Output shape: { "translatedText": string }. '
        "Put only the translation in translatedText, without explanations or quotes. "
        + JSON_ONLY_RULES
    )
    return PromptPair(system=system, user=text)
