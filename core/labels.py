"""Presentation labels derived from aggregated numbers.

The two good/medium scales (`overall_status_label` and `status_tone`) use
different cutoffs and names on purpose; they feed different widgets.
"""

from __future__ import annotations

from typing import Dict, Iterable, Literal

Tone = Literal["green", "yellow", "red"]

COLOR_EXCEEDS_MAX = "#3b82f6"
COLOR_GOOD = "#10b981"
COLOR_WARNING = "#f59e0b"
COLOR_POOR = "#ef4444"

TONE_COLORS: Dict[str, str] = {"green": COLOR_GOOD, "yellow": COLOR_WARNING, "red": COLOR_POOR}


def risk_label(value: float) -> str:
    if value <= 30:
        return "Low"
    if value <= 50:
        return "Medium"
    return "High"


def overall_status_label(score: float) -> str:
    if score >= 90:
        return "Very good"
    if score >= 80:
        return "Good"
    if score >= 60:
        return "Medium"
    return "Low"


def status_tone(score: float) -> str:
    """Good / Medium / Poor badge used next to the pre-award score."""
    if score >= 80:
        return "Good"
    if score >= 60:
        return "Medium"
    return "Poor"


def tone_for_status(status: str) -> Tone:
    return {"Good": "green", "Medium": "yellow"}.get(status, "red")


def score_color(score: float) -> str:
    # Some scores are allowed above 100.
    if score > 100:
        return COLOR_EXCEEDS_MAX
    if score >= 80:
        return COLOR_GOOD
    if score >= 60:
        return COLOR_WARNING
    return COLOR_POOR


def discipline_score_color(score: float) -> Tone:
    if score >= 85:
        return "green"
    if score >= 70:
        return "yellow"
    return "red"


def gauge_color(value: float, max_value: float = 100) -> str:
    pct = min((value / max_value) * 100, 100) if max_value else 0
    if pct >= 80:
        return COLOR_GOOD
    if pct >= 60:
        return COLOR_WARNING
    return COLOR_POOR


def ncr_status(count: int) -> str:
    if count <= 1:
        return "Closed"
    if count <= 4:
        return "In Progress"
    return "Open"


def ncr_criticality(count: int) -> str:
    if count <= 2:
        return "Low"
    if count <= 5:
        return "Medium"
    return "High"


def status_to_tone(status: str) -> Tone:
    if status == "Closed":
        return "green"
    if status == "In Progress":
        return "yellow"
    return "red"


def criticality_to_tone(criticality: str) -> Tone:
    if criticality == "Low":
        return "green"
    if criticality == "Medium":
        return "yellow"
    return "red"


def discipline_for_category(category: str) -> str:
    return {
        "Construction": "Civil",
        "Engineering": "Mechanical",
        "Manufacturing": "Process",
    }.get(category, "Piping")


def stable_display_value(values: Iterable[object]) -> str:
    """The shared value when every element is equal, otherwise "All"."""
    values = list(values)
    if not values:
        return "All"
    first = values[0]
    if all(v == first for v in values):
        return str(first)
    return "All"


def format_millions(value: float) -> str:
    return f"{value:.1f}M"
