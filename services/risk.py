"""Additive risk scoring over heat index, PM2.5 and UV index."""

from __future__ import annotations

from models.records import RiskLevel

HIGH_SCORE = 4
MEDIUM_SCORE = 2


def _heat_points(heat_index: float) -> int:
    if heat_index > 45:
        return 3
    if heat_index > 40:
        return 2
    if heat_index > 35:
        return 1
    return 0


def _pm25_points(pm25: float) -> int:
    if pm25 > 75:
        return 2
    if pm25 > 50:
        return 1
    return 0


def _uv_points(uv_index: float) -> int:
    return 1 if uv_index > 8 else 0


def risk_score(heat_index: float, pm25: float, uv_index: float) -> int:
    """Sum of the highest matching bracket for each factor."""
    return _heat_points(heat_index) + _pm25_points(pm25) + _uv_points(uv_index)


def classify_risk(heat_index: float, pm25: float, uv_index: float) -> RiskLevel:
    score = risk_score(heat_index, pm25, uv_index)
    if score >= HIGH_SCORE:
        return RiskLevel.high
    if score >= MEDIUM_SCORE:
        return RiskLevel.medium
    return RiskLevel.low
