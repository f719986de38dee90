import pytest

from prior_art_app.llm.risk_scorer import RiskScorer, parse_risk_response
from prior_art_app.retrieval.model import RiskLevel, ScoredCandidate

CANDIDATE = ScoredCandidate(id="US001", title="Solar shingle", abstract="A roofing shingle with a PV cell.")


def test_fenced_json_is_accepted() -> None:
    assessment = parse_risk_response('```json\n{"score": 85, "level": "high", "reason": "Same idea"}\n```')

    assert assessment.score == 85
    assert assessment.level is RiskLevel.HIGH
    assert assessment.reason == "Same idea"


@pytest.mark.parametrize(
    "reply",
    [
        "Sure! The risk is high.",
        '{"score": 140, "level": "High", "reason": "x"}',
        '{"score": 40, "level": "Severe", "reason": "x"}',
        '{"score": 40, "level": "Unknown", "reason": "x"}',
        '{"level": "Low", "reason": "missing score"}',
        '[{"score": 10, "level": "Low", "reason": "list"}]',
    ],
)
def test_invalid_replies_are_rejected(reply: str) -> None:
    with pytest.raises(ValueError):
        parse_risk_response(reply)


def test_scorer_copies_assessment_onto_candidate(settings, generator) -> None:
    generator.default = '{"score": 72, "level": "Medium", "reason": "Similar mounting"}'

    scored = RiskScorer(generator, settings).score("A roof tile that makes power", CANDIDATE)

    assert (scored.score, scored.level, scored.reason) == (72, RiskLevel.MEDIUM, "Similar mounting")
    assert scored.id == "US001"
    assert CANDIDATE.score is None


def test_scorer_marks_unparseable_reply_as_failed(settings, generator) -> None:
    generator.default = "I cannot help with that."

    scored = RiskScorer(generator, settings).score("desc", CANDIDATE)

    assert (scored.score, scored.level, scored.reason) == (None, RiskLevel.UNKNOWN, "Failed")


def test_scorer_marks_call_failure_as_failed(settings, generator) -> None:
    generator.replies = {"Solar shingle": ConnectionError("rate limited")}

    scored = RiskScorer(generator, settings).score("desc", CANDIDATE)

    assert (scored.score, scored.level, scored.reason) == (None, RiskLevel.UNKNOWN, "Failed")


def test_prompt_truncates_description(settings, generator) -> None:
    description = "d" * 1500

    RiskScorer(generator, settings).score(description, CANDIDATE)

    prompt = generator.prompts[-1]
    assert "d" * 1000 in prompt
    assert "d" * 1001 not in prompt
    assert "PATENT: Solar shingle" in prompt
    assert "ABSTRACT: A roofing shingle with a PV cell." in prompt
