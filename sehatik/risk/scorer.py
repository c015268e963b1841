"""
sehatik/risk/scorer.py
=======================
Self-Check Risk Scorer — Sehatik

Responsibility:
    - Accept the answer map collected across all self-check steps
    - Walk EVERY Question in every registered script (all branches, shown
      or not) to build ``max_score``
    - Add a question's weight to ``score`` when the chosen option is
      flagged as a concern, and record the question id in ``concerns``
    - Classify the result into low | moderate | high from fixed thresholds

Thresholds apply to the absolute score and the concern count, never to
score / max_score, so one red flag is not diluted by many normal answers.
High is evaluated before moderate.

This is a triage aid for awareness, not a diagnostic score.

This module does NOT:
    - Call any LLM or external API
    - Inspect transcripts or free text
    - Store results (they are recomputed on demand)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sehatik.script.registry import DEFAULT_REGISTRY, ScriptRegistry

logger = logging.getLogger("sehatik.risk.scorer")


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class Recommendation(str, Enum):
    CONTINUE_MONITORING = "continue_monitoring"
    SCHEDULE_CHECKUP = "schedule_checkup"
    URGENT_CONSULTATION = "urgent_consultation"


# ---------------------------------------------------------------------------
# Thresholds, high is checked first
# ---------------------------------------------------------------------------

HIGH_SCORE_THRESHOLD: int = 5
HIGH_CONCERN_COUNT: int = 3
MODERATE_SCORE_THRESHOLD: int = 2
MODERATE_CONCERN_COUNT: int = 1


# ---------------------------------------------------------------------------
# Per-tier display keys
# ---------------------------------------------------------------------------

_TIER_KEYS: dict[RiskLevel, dict[str, Any]] = {
    RiskLevel.HIGH: {
        "recommendation": Recommendation.URGENT_CONSULTATION,
        "recommendation_key": "selfCheck.result.recommendation.urgent",
        "message_key": "selfCheck.result.message.high",
        "next_steps_keys": (
            "results.steps.consult_specialist",
            "results.steps.within_48h",
            "results.steps.bring_notes",
            "results.steps.dont_panic",
        ),
    },
    RiskLevel.MODERATE: {
        "recommendation": Recommendation.SCHEDULE_CHECKUP,
        "recommendation_key": "selfCheck.result.recommendation.checkup",
        "message_key": "selfCheck.result.message.moderate",
        "next_steps_keys": (
            "results.steps.schedule_appointment",
            "results.steps.within_2weeks",
            "results.steps.continue_monitoring",
            "results.steps.note_changes",
        ),
    },
    RiskLevel.LOW: {
        "recommendation": Recommendation.CONTINUE_MONITORING,
        "recommendation_key": "selfCheck.result.recommendation.monitoring",
        "message_key": "selfCheck.result.message.low",
        "next_steps_keys": (
            "results.steps.monthly_exam",
            "results.steps.annual_screening",
            "results.steps.know_normal",
            "results.steps.stay_informed",
        ),
    },
}


@dataclass(frozen=True)
class RiskResult:
    """Derived triage result; never stored apart from the answers behind it."""

    risk_level: RiskLevel
    score: int
    max_score: int
    concerns: tuple[str, ...]
    recommendation: Recommendation
    recommendation_key: str
    message_key: str
    next_steps_keys: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk_level": self.risk_level.value,
            "score": self.score,
            "max_score": self.max_score,
            "concerns": list(self.concerns),
            "recommendation": self.recommendation.value,
            "recommendation_key": self.recommendation_key,
            "message_key": self.message_key,
            "next_steps_keys": list(self.next_steps_keys),
        }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify_risk(score: int, concern_count: int) -> RiskLevel:
    """
    Map an absolute score and concern count to a risk tier.

        score >= 5 or concerns >= 3  → high
        score >= 2 or concerns >= 1  → moderate
        otherwise                    → low
    """
    if score >= HIGH_SCORE_THRESHOLD or concern_count >= HIGH_CONCERN_COUNT:
        return RiskLevel.HIGH
    if score >= MODERATE_SCORE_THRESHOLD or concern_count >= MODERATE_CONCERN_COUNT:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def build_result(score: int, max_score: int, concerns: tuple[str, ...]) -> RiskResult:
    """Wrap raw totals into a RiskResult with the tier's display keys."""
    level = classify_risk(score, len(concerns))
    keys = _TIER_KEYS[level]
    return RiskResult(
        risk_level=level,
        score=score,
        max_score=max_score,
        concerns=concerns,
        recommendation=keys["recommendation"],
        recommendation_key=keys["recommendation_key"],
        message_key=keys["message_key"],
        next_steps_keys=keys["next_steps_keys"],
    )


def assess(
    answers: Mapping[str, str],
    registry: ScriptRegistry = DEFAULT_REGISTRY,
) -> RiskResult:
    """
    Score a session's answer map.

    Total over any mapping: missing answers, unknown question ids and
    values that match no option simply contribute nothing.

    Args:
        answers:  Question id → selected option value.
        registry: Scripts whose questions define the scoring universe.

    Returns:
        RiskResult for ``answers``.
    """
    score = 0
    max_score = 0
    concerns: list[str] = []

    for question in registry.all_questions():
        max_score += question.weight

        value = answers.get(question.id)
        if value is None:
            continue

        option = question.option_for(value)
        if option is not None and option.is_concern:
            score += question.weight
            concerns.append(question.id)

    result = build_result(score, max_score, tuple(concerns))

    logger.info(
        "Risk assessment: level=%s score=%d/%d concerns=%d",
        result.risk_level.value,
        result.score,
        result.max_score,
        len(result.concerns),
    )
    return result
