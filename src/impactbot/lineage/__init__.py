"""Client for the DQLabs lineage and impact-analysis API."""

from impactbot.lineage.client import LineageClient
from impactbot.lineage.matcher import column_matches, matches_any

__all__ = ["LineageClient", "column_matches", "matches_any"]
