"""LLM-based prior-art risk scoring for retrieved patents."""

from __future__ import annotations

import json
import re

from pydantic import BaseModel, Field, ValidationError, field_validator

from prior_art_app.config.logging import get_logger
from prior_art_app.config.settings import AppSettings, get_settings
from prior_art_app.llm.generator import TextGenerator
from prior_art_app.retrieval.model import RiskLevel, ScoredCandidate

LOGGER = get_logger(__name__)

RISK_PROMPT = """Analyze prior art risk (0-100) of the existing patent for the user's invention.
USER: {description}
PATENT: {title}
ABSTRACT: {abstract}

Respond with JSON only: {{"score": 85, "level": "High", "reason": "..."}}
The level must be one of High, Medium or Low."""

FENCE_PATTERN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
FAILED_REASON = "Failed"


class RiskAssessment(BaseModel):
    """Strict shape expected back from the generator."""

    score: float = Field(ge=0, le=100)
    level: RiskLevel
    reason: str

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().capitalize()
        return value

    @field_validator("level")
    @classmethod
    def _reject_unknown(cls, value: RiskLevel) -> RiskLevel:
        if value is RiskLevel.UNKNOWN:
            raise ValueError("generator must commit to High, Medium or Low")
        return value


def strip_code_fences(text: str) -> str:
    return FENCE_PATTERN.sub("", text).strip()


def parse_risk_response(text: str) -> RiskAssessment:
    """Parse a generator reply, tolerating markdown fences around the JSON.

    Raises ``ValueError`` (``json.JSONDecodeError`` or ``ValidationError``)
    when the reply is not a valid assessment.
    """
    payload = json.loads(strip_code_fences(text))
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    return RiskAssessment.model_validate(payload)


class RiskScorer:
    """Ask a text generator to rate one candidate at a time."""

    def __init__(self, generator: TextGenerator, settings: AppSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self.generator = generator

    def build_prompt(self, description: str, candidate: ScoredCandidate) -> str:
        return RISK_PROMPT.format(
            description=description[: self.settings.scorer_description_chars],
            title=candidate.title,
            abstract=candidate.abstract,
        )

    def score(self, description: str, candidate: ScoredCandidate) -> ScoredCandidate:
        """Return a scored copy of ``candidate``; never raises."""
        prompt = self.build_prompt(description, candidate)
        try:
            assessment = parse_risk_response(self.generator.generate(prompt))
        except (ValueError, ValidationError) as exc:
            LOGGER.warning(
                "Unparseable risk assessment",
                extra={"patent_id": candidate.id, "error": str(exc)},
            )
            return self._failed(candidate)
        except Exception as exc:
            LOGGER.warning(
                "Risk scoring call failed",
                extra={"patent_id": candidate.id, "error": str(exc)},
            )
            return self._failed(candidate)

        return candidate.model_copy(
            update={
                "score": assessment.score,
                "level": assessment.level,
                "reason": assessment.reason,
            }
        )

    @staticmethod
    def _failed(candidate: ScoredCandidate) -> ScoredCandidate:
        return candidate.model_copy(
            update={"score": None, "level": RiskLevel.UNKNOWN, "reason": FAILED_REASON}
        )
