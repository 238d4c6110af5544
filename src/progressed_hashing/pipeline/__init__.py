"""Hashing pipeline: workers, progress aggregation and orchestration."""
