"""Bulk measurement ingestion.

decode uploaded CSV/Excel bytes -> validate every row against the shared
WaterQualitySchema -> commit valid rows as Area/Record pairs.
"""
