import asyncio
import json

import pytest

from app.services.ai_errors import MissingParameter, UpstreamError, UpstreamTimeout, UpstreamUnavailable
from app.services.ai_orchestrator import GenerationRequest
from app.services.prompts import STRICT_RETRY_SUFFIX


def _run(orchestrator, kind, body):
    return asyncio.run(orchestrator.generate(GenerationRequest.from_body(kind, body)))


def test_valid_first_response_needs_no_retry(make_orchestrator, valid_payload, profile_body):
    orchestrator, client = make_orchestrator([json.dumps(valid_payload("dashboard-analysis"))])

    envelope = _run(orchestrator, "dashboard-analysis", {"profile": profile_body})

    assert envelope.origin == "model"
    assert envelope.attempts == 1
    assert len(client.calls) == 1
    assert client.calls[0]["temperature"] == 0.7
    assert client.calls[0]["expect_json"] is True


def test_invalid_json_retries_once_with_stricter_prompt(make_orchestrator, valid_payload, profile_body):
    orchestrator, client = make_orchestrator(["Sure! Here is your roadmap", json.dumps(valid_payload("career-roadmap-set"))])

    envelope = _run(orchestrator, "career-roadmap-set", {"userProfile": profile_body, "selectedPath": "Data Engineer"})

    assert envelope.origin == "model"
    assert envelope.attempts == 2
    assert len(client.calls) == 2
    assert STRICT_RETRY_SUFFIX not in client.calls[0]["system"]
    assert client.calls[1]["system"].endswith(STRICT_RETRY_SUFFIX)
    assert client.calls[1]["user"] == client.calls[0]["user"]


def test_two_invalid_responses_fall_back(make_orchestrator, profile_body):
    orchestrator, client = make_orchestrator(["{not json", "still not json"])

    envelope = _run(orchestrator, "dashboard-analysis", {"profile": profile_body})

    assert len(client.calls) == 2
    assert envelope.origin == "fallback"
    assert envelope.confidence == 0
    assert envelope.human_review_needed is True
    assert envelope.payload["confidence_score"] == 0
    assert envelope.payload["human_review_needed"] is True


def test_schema_violation_then_fallback(make_orchestrator, valid_payload, profile_body):
    broken = valid_payload("career-discovery-options")
    broken["options"] = []
    orchestrator, client = make_orchestrator([json.dumps(broken), json.dumps(broken)])

    envelope = _run(orchestrator, "career-discovery-options", {"profile": profile_body})

    assert len(client.calls) == 2
    assert envelope.origin == "fallback"
    assert envelope.payload["options"][0]["title"] == "Data Engineer"


def test_timeout_retries_with_same_prompt(make_orchestrator, valid_payload):
    orchestrator, client = make_orchestrator(
        [UpstreamTimeout("timed out"), json.dumps(valid_payload("roi-analysis"))]
    )

    envelope = _run(orchestrator, "roi-analysis", {"targetCountry": "Germany", "userBudget": 20000})

    assert envelope.origin == "model"
    assert client.calls[0]["system"] == client.calls[1]["system"]


def test_double_timeout_resolves_to_fallback(make_orchestrator):
    orchestrator, client = make_orchestrator([UpstreamTimeout("timed out"), UpstreamTimeout("timed out")])

    envelope = _run(orchestrator, "roi-analysis", {"targetCountry": "Germany", "userBudget": 20000})

    assert len(client.calls) == 2
    assert envelope.origin == "fallback"


def test_upstream_error_is_not_retried(make_orchestrator, profile_body):
    orchestrator, client = make_orchestrator([UpstreamError("LLM API error (400)")])

    envelope = _run(orchestrator, "career-roadmap-tiers", {"profile": profile_body})

    assert len(client.calls) == 1
    assert envelope.origin == "fallback"
    assert set(envelope.payload) == {"fast_track", "growth", "mastery"}


def test_low_self_reported_confidence_forces_review(make_orchestrator, valid_payload, profile_body):
    payload = valid_payload("dashboard-analysis")
    payload["confidence_score"] = 55
    payload["human_review_needed"] = False
    orchestrator, _ = make_orchestrator([json.dumps(payload)])

    envelope = _run(orchestrator, "dashboard-analysis", {"profile": profile_body})

    assert envelope.origin == "model"
    assert envelope.confidence == 55
    assert envelope.human_review_needed is True
    assert envelope.payload["human_review_needed"] is True


def test_missing_parameter_makes_no_model_call(make_orchestrator):
    orchestrator, client = make_orchestrator([])

    with pytest.raises(MissingParameter) as excinfo:
        _run(orchestrator, "roi-analysis", {"userBudget": 20000})

    assert excinfo.value.parameter == "targetCountry"
    assert client.calls == []


def test_missing_profile_is_rejected(make_orchestrator):
    orchestrator, client = make_orchestrator([])
    with pytest.raises(MissingParameter):
        _run(orchestrator, "dashboard-analysis", {"language": "en"})
    assert client.calls == []


def test_unconfigured_provider_is_surfaced(make_orchestrator, profile_body):
    orchestrator, client = make_orchestrator([], configured=False)
    with pytest.raises(UpstreamUnavailable):
        _run(orchestrator, "dashboard-analysis", {"profile": profile_body})
    assert client.calls == []


def test_english_translation_short_circuits(make_orchestrator):
    orchestrator, client = make_orchestrator([], configured=False)

    envelope = _run(orchestrator, "translation", {"text": "Welcome back", "targetLang": "en"})

    assert client.calls == []
    assert envelope.origin == "passthrough"
    assert envelope.payload == {"translatedText": "Welcome back"}


def test_english_translation_keeps_text_verbatim(make_orchestrator):
    orchestrator, client = make_orchestrator([], configured=False)

    envelope = _run(orchestrator, "translation", {"text": "  Hello\n", "targetLang": "en-US"})

    assert client.calls == []
    assert envelope.payload == {"translatedText": "  Hello\n"}


def test_translation_uses_low_temperature(make_orchestrator, valid_payload):
    orchestrator, client = make_orchestrator([json.dumps(valid_payload("translation"))])

    envelope = _run(orchestrator, "translation", {"text": "Hello world", "targetLang": "hi"})

    assert envelope.payload["translatedText"] == "नमस्ते दुनिया"
    assert client.calls[0]["temperature"] == 0.1
    assert client.calls[0]["max_tokens"] == 256
    assert client.calls[0]["user"] == "Hello world"
    # No self-reported confidence, so the result is always flagged.
    assert envelope.human_review_needed is True


def test_persist_only_for_durable_kinds(make_orchestrator, valid_payload, recording_store):
    store = recording_store
    orchestrator, _ = make_orchestrator([json.dumps(valid_payload("translation"))], store=store)
    request = GenerationRequest.from_body("translation", {"text": "Hello", "targetLang": "hi"})
    envelope = asyncio.run(orchestrator.generate(request))

    assert orchestrator.requires_persistence(request) is False
    assert orchestrator.persist(request, envelope) is None
    assert store.saved == []

    roi_request = GenerationRequest.from_body("roi-analysis", {"targetCountry": "Germany", "userBudget": 20000})
    assert orchestrator.requires_persistence(roi_request) is True
    assert orchestrator.persist(roi_request, envelope) == "record-1"
