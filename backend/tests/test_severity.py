"""
ResiliNet Triage - Severity Normalizer Tests

Tests for the urgency override rules.
These tests verify:
- Each override rule fires on its trigger and only there
- Rules run in order and only touch urgency
- A second normalization pass is a no-op
- Lowercase model vocabulary passes through untouched

Run with: pytest tests/test_severity.py -v
"""

import itertools

import pytest

from app.core.severity import OVERRIDE_RULES, applied_overrides, normalize_severity
from app.core.types import AnalysisResult


URGENCIES = ["Critical", "High", "Medium", "Low"]
CATEGORIES = ["Food/Water", "Infrastructure", "Rescue", "Medical", "Fire", "Other", "Shelter"]


def make_result(category: str, urgency: str) -> AnalysisResult:
    return AnalysisResult(
        urgency=urgency,
        category=category,
        summary="Test incident",
        resources=["Supplies"],
    )


class TestOverrideRules:
    """Tests for the individual override rules."""

    def test_food_water_critical_capped_to_high(self):
        result = normalize_severity(make_result("Food/Water", "Critical"))
        assert result.urgency == "High"

    @pytest.mark.parametrize("urgency", ["High", "Medium", "Low"])
    def test_food_water_other_urgencies_unchanged(self, urgency: str):
        assert normalize_severity(make_result("Food/Water", urgency)).urgency == urgency

    @pytest.mark.parametrize("urgency", ["Critical", "High"])
    def test_infrastructure_downgraded_to_medium(self, urgency: str):
        result = normalize_severity(make_result("Infrastructure", urgency))
        assert result.urgency == "Medium"

    @pytest.mark.parametrize("urgency", ["Medium", "Low"])
    def test_infrastructure_lower_urgencies_unchanged(self, urgency: str):
        assert normalize_severity(make_result("Infrastructure", urgency)).urgency == urgency

    @pytest.mark.parametrize("category", ["Rescue", "Medical", "Fire"])
    def test_life_threat_medium_escalated_to_high(self, category: str):
        result = normalize_severity(make_result(category, "Medium"))
        assert result.urgency == "High"

    @pytest.mark.parametrize("category", ["Rescue", "Medical", "Fire"])
    @pytest.mark.parametrize("urgency", ["Critical", "High", "Low"])
    def test_life_threat_non_medium_unchanged(self, category: str, urgency: str):
        assert normalize_severity(make_result(category, urgency)).urgency == urgency

    @pytest.mark.parametrize("urgency", URGENCIES)
    def test_other_category_never_adjusted(self, urgency: str):
        assert normalize_severity(make_result("Other", urgency)).urgency == urgency

    def test_fire_critical_not_overridden(self):
        assert normalize_severity(make_result("Fire", "Critical")).urgency == "Critical"


class TestNormalizationProperties:
    """Properties that hold across every category/urgency combination."""

    @pytest.mark.parametrize(
        "category,urgency", list(itertools.product(CATEGORIES, URGENCIES))
    )
    def test_second_pass_is_noop(self, category: str, urgency: str):
        once = normalize_severity(make_result(category, urgency))
        twice = normalize_severity(once)
        assert twice == once

    @pytest.mark.parametrize(
        "category,urgency", list(itertools.product(CATEGORIES, URGENCIES))
    )
    def test_only_urgency_changes(self, category: str, urgency: str):
        original = make_result(category, urgency)
        normalized = normalize_severity(original)

        assert normalized.category == original.category
        assert normalized.summary == original.summary
        assert normalized.resources == original.resources
        assert normalized.confidence is None

    def test_input_not_mutated(self):
        original = make_result("Food/Water", "Critical")
        normalize_severity(original)
        assert original.urgency == "Critical"

    def test_rules_are_ordered(self):
        names = [rule.name for rule in OVERRIDE_RULES]
        assert names == ["cap_food_water", "downgrade_infrastructure", "escalate_life_threat"]


class TestAppliedOverrides:
    """Tests for applied_overrides() reporting."""

    def test_reports_fired_rule(self):
        assert applied_overrides(make_result("Food/Water", "Critical")) == ["cap_food_water"]

    def test_reports_nothing_when_no_rule_fires(self):
        assert applied_overrides(make_result("Fire", "Critical")) == []

    def test_normalized_record_reports_nothing(self):
        normalized = normalize_severity(make_result("Rescue", "Medium"))
        assert applied_overrides(normalized) == []


class TestVocabularyMismatch:
    """
    The prompt asks for lowercase snake_case categories and lowercase
    urgencies, while the rules compare against capitalized literals.
    """

    @pytest.mark.parametrize(
        "category,urgency",
        [
            ("food_water", "critical"),
            ("infrastructure", "high"),
            ("rescue", "medium"),
            ("medical", "medium"),
            ("fire", "medium"),
        ],
    )
    def test_lowercase_model_output_passes_through(self, category: str, urgency: str):
        result = normalize_severity(make_result(category, urgency))
        assert result.urgency == urgency
        assert applied_overrides(make_result(category, urgency)) == []
