"""WaterSpot: water quality scoring and bulk measurement ingestion."""
