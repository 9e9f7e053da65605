"""Tip generator: ordered rule list -> remediation recommendations.

Each rule pairs a predicate over (measurements, WQIResult, schema) with a
fixed Tip payload. Rules are evaluated in list order and that order is
the display order: general tips for a Poor label first, then one tip per
breached parameter in schema order.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from waterspot.wqi.models import MeasurementSet, QualityLabel, Tip, TipSeverity, WQIResult
from waterspot.wqi.schema import DEFAULT_SCHEMA, WaterQualitySchema

TipPredicate = Callable[[MeasurementSet, WQIResult, WaterQualitySchema], bool]


@dataclass(frozen=True)
class TipRule:
    """One (predicate, payload) pair of the rule engine."""

    rule_id: str
    applies: TipPredicate
    title: str
    body: str
    severity: TipSeverity
    linked_params: tuple[str, ...] = ()

    def build(self) -> Tip:
        return Tip(
            title=self.title,
            body=self.body,
            severity=self.severity,
            linked_params=list(self.linked_params),
        )


# ---------------------------------------------------------------------------
# Predicate factories
# ---------------------------------------------------------------------------


def label_is(label: QualityLabel) -> TipPredicate:
    def _check(_m: MeasurementSet, result: WQIResult, _s: WaterQualitySchema) -> bool:
        return result.label == label

    return _check


def below_standard(name: str) -> TipPredicate:
    """Present and below the schema's ``standard_min`` for ``name``."""

    def _check(m: MeasurementSet, _r: WQIResult, schema: WaterQualitySchema) -> bool:
        value = m.get(name)
        limit = schema.bounds(name).standard_min
        return value is not None and limit is not None and value < limit

    return _check


def above_standard(name: str) -> TipPredicate:
    """Present and above the schema's ``standard_max`` for ``name``."""

    def _check(m: MeasurementSet, _r: WQIResult, schema: WaterQualitySchema) -> bool:
        value = m.get(name)
        limit = schema.bounds(name).standard_max
        return value is not None and limit is not None and value > limit

    return _check


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

TIP_RULES: tuple[TipRule, ...] = (
    TipRule(
        rule_id="poor_immediate_safety",
        applies=label_is(QualityLabel.POOR),
        title="Immediate Safety Precautions",
        body=(
            "Avoid direct consumption until treated or re-tested. "
            "Use certified RO/UV systems for drinking water."
        ),
        severity=TipSeverity.WARNING,
    ),
    TipRule(
        rule_id="poor_treatment_options",
        applies=label_is(QualityLabel.POOR),
        title="Treatment Options",
        body=(
            "Consider boiling only for microbial concerns; it does not remove "
            "chemicals like nitrates/fluoride. Retest after treatment."
        ),
        severity=TipSeverity.ADVICE,
    ),
    TipRule(
        rule_id="ph_acidic",
        applies=below_standard("ph"),
        title="Acidic Water Treatment",
        body=(
            "Water is acidic. Dose lime/soda ash to raise pH; check for pipe "
            "corrosion. Target pH: 7.0-8.5."
        ),
        severity=TipSeverity.WARNING,
        linked_params=("ph",),
    ),
    TipRule(
        rule_id="ph_alkaline",
        applies=above_standard("ph"),
        title="Alkaline Water Treatment",
        body=(
            "Water is alkaline. Consider mild acid dosing or carbon filtration. "
            "Target pH: 6.5-8.5."
        ),
        severity=TipSeverity.WARNING,
        linked_params=("ph",),
    ),
    TipRule(
        rule_id="hardness_high",
        applies=above_standard("hardness"),
        title="Hard Water Solutions",
        body=(
            "Install ion-exchange softener or RO system; descale appliances "
            "regularly. Consider water softening for bathing."
        ),
        severity=TipSeverity.ADVICE,
        linked_params=("hardness",),
    ),
    TipRule(
        rule_id="tds_high",
        applies=above_standard("tds"),
        title="High TDS Management",
        body=(
            "Prefer RO for drinking; blend with better source if feasible. "
            "Check for saltwater intrusion or industrial discharge."
        ),
        severity=TipSeverity.ADVICE,
        linked_params=("tds", "conductivity"),
    ),
    TipRule(
        rule_id="turbidity_high",
        applies=above_standard("turbidity"),
        title="Turbidity Reduction",
        body=(
            "Use sediment/multimedia/sand filtration; allow settling time. "
            "Check source disturbance and erosion."
        ),
        severity=TipSeverity.WARNING,
        linked_params=("turbidity",),
    ),
    TipRule(
        rule_id="nitrate_high",
        applies=above_standard("nitrate"),
        title="Nitrate Contamination Alert",
        body=(
            "Avoid for infants and pregnant women. Use nitrate removal "
            "(anion exchange/RO). Investigate agricultural runoff."
        ),
        severity=TipSeverity.WARNING,
        linked_params=("nitrate",),
    ),
    TipRule(
        rule_id="fluoride_high",
        applies=above_standard("fluoride"),
        title="Excess Fluoride Treatment",
        body=(
            "Use defluoridation (Nalgonda/RO/activated alumina). Inform "
            "community about dental and skeletal risks."
        ),
        severity=TipSeverity.WARNING,
        linked_params=("fluoride",),
    ),
    TipRule(
        rule_id="chloride_high",
        applies=above_standard("chloride"),
        title="High Chloride Levels",
        body=(
            "Use RO/distillation; check for saline intrusion or industrial "
            "discharge. Can affect taste and corrosion."
        ),
        severity=TipSeverity.ADVICE,
        linked_params=("chloride",),
    ),
    TipRule(
        rule_id="conductivity_high",
        applies=above_standard("conductivity"),
        title="High Conductivity Investigation",
        body=(
            "Indicates high dissolved ions. Survey for industrial discharge, "
            "seawater ingress, or natural mineral deposits."
        ),
        severity=TipSeverity.ADVICE,
        linked_params=("conductivity", "tds"),
    ),
    TipRule(
        rule_id="temperature_high",
        applies=above_standard("temperature"),
        title="High Temperature Management",
        body=(
            "Cool/store before use. High temperature reduces dissolved oxygen "
            "and can promote bacterial growth."
        ),
        severity=TipSeverity.ADVICE,
        linked_params=("temperature",),
    ),
)


class TipGenerator:
    """Evaluates the rule table against one calculation."""

    def __init__(
        self,
        schema: WaterQualitySchema | None = None,
        rules: tuple[TipRule, ...] = TIP_RULES,
    ) -> None:
        self._schema = schema or DEFAULT_SCHEMA
        self._rules = rules

    @property
    def rules(self) -> tuple[TipRule, ...]:
        return self._rules

    def generate(self, measurements: MeasurementSet, result: WQIResult) -> list[Tip]:
        return [
            rule.build()
            for rule in self._rules
            if rule.applies(measurements, result, self._schema)
        ]

