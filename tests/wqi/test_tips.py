"""Tests for TipGenerator: ordered (predicate, payload) rules."""

from __future__ import annotations

import pytest

from waterspot.wqi.aggregator import WQICalculator
from waterspot.wqi.models import QualityLabel, TipSeverity
from waterspot.wqi.tips import TIP_RULES, TipGenerator, TipRule, above_standard, label_is


@pytest.fixture
def calculator() -> WQICalculator:
    return WQICalculator()


@pytest.fixture
def generator() -> TipGenerator:
    return TipGenerator()


def _tips(calculator: WQICalculator, generator: TipGenerator, values: dict[str, float]):
    return generator.generate(values, calculator.calculate(values))


class TestParameterTips:
    def test_nitrate_tip(self, calculator: WQICalculator, generator: TipGenerator) -> None:
        tips = _tips(calculator, generator, {"nitrate": 50.0})
        assert len(tips) == 1
        assert tips[0].severity == TipSeverity.WARNING
        assert "nitrate" in tips[0].linked_params

    def test_clean_water_has_no_tips(
        self, calculator: WQICalculator, generator: TipGenerator,
    ) -> None:
        assert _tips(calculator, generator, {"ph": 7.0, "tds": 200.0}) == []

    def test_acidic_and_alkaline(
        self, calculator: WQICalculator, generator: TipGenerator,
    ) -> None:
        assert _tips(calculator, generator, {"ph": 6.0})[0].title == "Acidic Water Treatment"
        assert _tips(calculator, generator, {"ph": 9.0})[0].title == "Alkaline Water Treatment"

    def test_tds_and_conductivity_cross_link(
        self, calculator: WQICalculator, generator: TipGenerator,
    ) -> None:
        tips = _tips(calculator, generator, {"tds": 510.0, "conductivity": 1510.0})
        by_title = {t.title: t for t in tips}
        assert by_title["High TDS Management"].linked_params == ["tds", "conductivity"]
        assert by_title["High Conductivity Investigation"].linked_params == [
            "conductivity", "tds",
        ]

    def test_temperature_tip_without_warning(
        self, calculator: WQICalculator, generator: TipGenerator,
    ) -> None:
        values = {"ph": 7.0, "temperature": 36.0}
        result = calculator.calculate(values)
        tips = generator.generate(values, result)
        assert result.warnings == []
        assert [t.title for t in tips] == ["High Temperature Management"]
        assert tips[0].severity == TipSeverity.ADVICE

    def test_temperature_at_limit(
        self, calculator: WQICalculator, generator: TipGenerator,
    ) -> None:
        assert _tips(calculator, generator, {"ph": 7.0, "temperature": 35.0}) == []

    @pytest.mark.parametrize(
        ("values", "severity"),
        [
            ({"turbidity": 10.0}, TipSeverity.WARNING),
            ({"fluoride": 1.6}, TipSeverity.WARNING),
            ({"hardness": 310.0}, TipSeverity.ADVICE),
            ({"chloride": 260.0}, TipSeverity.ADVICE),
        ],
    )
    def test_severity_by_health_risk(
        self,
        calculator: WQICalculator,
        generator: TipGenerator,
        values: dict[str, float],
        severity: TipSeverity,
    ) -> None:
        tips = _tips(calculator, generator, values)
        assert [t.severity for t in tips] == [severity]

    def test_alkalinity_has_no_rule(
        self, calculator: WQICalculator, generator: TipGenerator,
    ) -> None:
        assert _tips(calculator, generator, {"alkalinity": 450.0, "ph": 7.0}) == []


class TestOrdering:
    def test_poor_general_tips_first_then_schema_order(
        self, calculator: WQICalculator, generator: TipGenerator,
    ) -> None:
        values = {
            "temperature": 40.0,
            "conductivity": 2000.0,
            "turbidity": 10.0,
            "tds": 600.0,
        }
        result = calculator.calculate(values)
        assert result.label == QualityLabel.POOR

        tips = generator.generate(values, result)
        assert [t.title for t in tips] == [
            "Immediate Safety Precautions",
            "Treatment Options",
            "High TDS Management",
            "Turbidity Reduction",
            "High Conductivity Investigation",
            "High Temperature Management",
        ]
        assert tips[0].severity == TipSeverity.WARNING
        assert tips[0].linked_params == []
        assert tips[1].severity == TipSeverity.ADVICE

    def test_rule_ids_unique(self) -> None:
        ids = [r.rule_id for r in TIP_RULES]
        assert len(ids) == len(set(ids))


class TestCustomRules:
    def test_default_rule_table(self) -> None:
        assert TipGenerator().rules is TIP_RULES

    def test_injected_rule_table(self, calculator: WQICalculator) -> None:
        rule = TipRule(
            rule_id="moderate_retest",
            applies=label_is(QualityLabel.MODERATE),
            title="Retest",
            body="Retest within a month.",
            severity=TipSeverity.ADVICE,
        )
        generator = TipGenerator(rules=(rule,))
        assert generator.rules == (rule,)
        values = {"ph": 8.5}
        assert [t.title for t in generator.generate(values, calculator.calculate(values))] == [
            "Retest",
        ]

    def test_above_standard_ignores_absent(self, calculator: WQICalculator) -> None:
        predicate = above_standard("nitrate")
        values = {"ph": 7.0}
        assert predicate(values, calculator.calculate(values), calculator.schema) is False
