"""Water Quality Index engine.

Sub-index scoring, weighted aggregation into a composite WQI with a
Good/Moderate/Poor label, completeness confidence, threshold warnings,
and rule-based remediation tips. Every rule table is read from one
shared ``WaterQualitySchema``.

Deterministic -- no I/O, no model inference.
"""
