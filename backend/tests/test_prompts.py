import json

import pytest

from app.services.ai_errors import MissingParameter
from app.services.profile_normalizer import normalize_profile
from app.services.prompts import (
    JSON_ONLY_RULES,
    MAX_TRANSLATION_CHARS,
    STRICT_RETRY_SUFFIX,
    PromptPair,
    build_dashboard_prompt,
    build_discovery_prompt,
    build_roadmap_set_prompt,
    build_roadmap_tiers_prompt,
    build_roi_prompt,
    build_translation_prompt,
    strict_retry_prompt,
)


@pytest.fixture
def profile(profile_body):
    return normalize_profile(profile_body)


@pytest.mark.parametrize(
    "builder",
    [build_dashboard_prompt, build_roadmap_set_prompt, build_roadmap_tiers_prompt, build_discovery_prompt],
)
def test_profile_builders_require_a_profile(builder):
    with pytest.raises(MissingParameter) as excinfo:
        builder(None, {})
    assert excinfo.value.parameter == "profile"


def test_dashboard_prompt_names_every_field_and_language(profile):
    prompt = build_dashboard_prompt(profile, {"language": "hi"})
    for key in ("confidence_score", "human_review_needed", "skill_gaps", "deadlines", "daily_intel", "radar_analysis"):
        assert key in prompt.system
    assert "hi" in prompt.system
    assert JSON_ONLY_RULES in prompt.system
    user = json.loads(prompt.user)
    assert user["profile"]["name"] == "Asha Rao"
    assert user["profile"]["skills"] == ["Python", "SQL"]


def test_roadmap_set_prompt_prefers_selected_path(profile):
    prompt = build_roadmap_set_prompt(profile, {"selectedPath": "Cloud Architect"})
    assert '"Cloud Architect"' in prompt.system
    assert json.loads(prompt.user)["selected_path"] == "Cloud Architect"

    fallback = build_roadmap_set_prompt(profile, {})
    assert '"Data Engineer"' in fallback.system


def test_roadmap_tiers_prompt_lists_tiers(profile):
    prompt = build_roadmap_tiers_prompt(profile, {})
    for tier in ("fast_track", "growth", "mastery"):
        assert tier in prompt.system


def test_roi_prompt_needs_no_profile():
    prompt = build_roi_prompt(None, {"targetCountry": "Germany", "userBudget": "20,000"})
    assert "Germany" in prompt.system
    assert "20,000 USD" in prompt.system
    assert json.loads(prompt.user)["budget_usd"] == 20000.0


@pytest.mark.parametrize(
    "parameters, missing",
    [
        ({"userBudget": 20000}, "targetCountry"),
        ({"targetCountry": "  ", "userBudget": 20000}, "targetCountry"),
        ({"targetCountry": "Germany"}, "userBudget"),
        ({"targetCountry": "Germany", "userBudget": 0}, "userBudget"),
        ({"targetCountry": "Germany", "userBudget": "cheap"}, "userBudget"),
        ({"targetCountry": "Germany", "userBudget": True}, "userBudget"),
    ],
)
def test_roi_prompt_rejects_bad_parameters(parameters, missing):
    with pytest.raises(MissingParameter) as excinfo:
        build_roi_prompt(None, parameters)
    assert excinfo.value.parameter == missing


def test_translation_prompt_sends_raw_text():
    prompt = build_translation_prompt(None, {"text": "  Hello world ", "targetLang": "hi"})
    assert prompt.user == "Hello world"
    assert "translatedText" in prompt.system
    assert "hi" in prompt.system


@pytest.mark.parametrize(
    "parameters, missing",
    [
        ({"targetLang": "hi"}, "text"),
        ({"text": "Hello"}, "targetLang"),
        ({"text": "x" * (MAX_TRANSLATION_CHARS + 1), "targetLang": "hi"}, "text"),
    ],
)
def test_translation_prompt_rejects_bad_parameters(parameters, missing):
    with pytest.raises(MissingParameter) as excinfo:
        build_translation_prompt(None, parameters)
    assert excinfo.value.parameter == missing


def test_strict_retry_only_extends_system_message():
    prompt = PromptPair(system="base", user="payload")
    strict = strict_retry_prompt(prompt)
    assert strict.system == "base" + STRICT_RETRY_SUFFIX
    assert strict.user == "payload"
