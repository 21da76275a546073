"""
ResiliNet Triage - Severity Normalizer

Fixed organizational override rules applied to the classifier's urgency,
independent of the model's own judgment.

Rules run in order; a later rule sees the urgency an earlier rule produced:

    1. Food/Water + Critical            -> High
    2. Infrastructure + Critical/High   -> Medium
    3. Rescue/Medical/Fire + Medium     -> High

No rule's output satisfies its own antecedent, so normalizing an already
normalized record is a no-op.

Note: the classifier prompt asks for lowercase snake_case categories
("food_water") while these rules compare against "Food/Water" and friends.
Lowercase replies pass through unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Tuple

from app.core.types import AnalysisResult, Category, Urgency


@dataclass(frozen=True)
class OverrideRule:
    """Set urgency to `target` when category and urgency both match."""
    name: str
    categories: FrozenSet[str]
    urgencies: FrozenSet[str]
    target: str

    def applies(self, result: AnalysisResult) -> bool:
        return result.category in self.categories and result.urgency in self.urgencies


OVERRIDE_RULES: Tuple[OverrideRule, ...] = (
    OverrideRule(
        name="cap_food_water",
        categories=frozenset({Category.FOOD_WATER.value}),
        urgencies=frozenset({Urgency.CRITICAL.value}),
        target=Urgency.HIGH.value,
    ),
    OverrideRule(
        name="downgrade_infrastructure",
        categories=frozenset({Category.INFRASTRUCTURE.value}),
        urgencies=frozenset({Urgency.CRITICAL.value, Urgency.HIGH.value}),
        target=Urgency.MEDIUM.value,
    ),
    OverrideRule(
        name="escalate_life_threat",
        categories=frozenset({
            Category.RESCUE.value,
            Category.MEDICAL.value,
            Category.FIRE.value,
        }),
        urgencies=frozenset({Urgency.MEDIUM.value}),
        target=Urgency.HIGH.value,
    ),
)


def _apply(result: AnalysisResult) -> Tuple[AnalysisResult, List[str]]:
    fired: List[str] = []
    for rule in OVERRIDE_RULES:
        if rule.applies(result):
            result = result.with_urgency(rule.target)
            fired.append(rule.name)
    return result, fired


def normalize_severity(result: AnalysisResult) -> AnalysisResult:
    """
    Apply the override rules and return the adjusted record.

    Only `urgency` may change; the input is not modified.
    """
    normalized, _ = _apply(result)
    return normalized


def applied_overrides(result: AnalysisResult) -> List[str]:
    """Names of the rules that fire when normalizing `result`, in order."""
    _, fired = _apply(result)
    return fired
