# sehatik/risk/__init__.py
# =========================
# Self-Check Risk Scoring — Sehatik
#
# Responsibility:
#   - Weighted concern score over all scripted questions
#   - Discrete tier (low | moderate | high) from absolute thresholds
#   - Recommendation and display keys per tier
#
# Public API:
#   - assess()        : answer map → RiskResult
#   - classify_risk() : (score, concern count) → RiskLevel

from sehatik.risk.scorer import (  # noqa: F401
    Recommendation,
    RiskLevel,
    RiskResult,
    assess,
    classify_risk,
)
