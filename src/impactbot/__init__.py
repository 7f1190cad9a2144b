"""impactbot - downstream impact reports for dbt model changes."""

__version__ = "0.1.0"
