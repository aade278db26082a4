"""
Points coalescing for roster entries.

A roster entry may carry a precomputed total, a raw per-period stats array, or
both. The precomputed value wins when it is non-zero; otherwise the stats
array is searched for the weekly record of the requested source.

NOTE: a precomputed total of exactly 0 is treated as absent, so a player who
truly scored zero is resolved through the stats array. This conflates "scored
zero" with "not yet computed" and is kept as-is pending product clarification.
"""

from typing import Optional

from data_pipeline.common.coercion import to_number
from data_pipeline.weekly_boxscores.config import SOURCE_ACTUAL, SOURCE_PROJECTED, WEEKLY_SPLIT
from data_pipeline.weekly_boxscores.models import RosterEntry


def _from_stats(entry: RosterEntry, week: int, source_id: int) -> float:
    for stat in entry.stats:
        if (stat.scoring_period_id == week
                and stat.stat_split_type_id == WEEKLY_SPLIT
                and stat.stat_source_id == source_id):
            return to_number(stat.applied_total) or 0
    return 0


def _coalesce(precomputed: Optional[float], entry: RosterEntry, week: int, source_id: int) -> float:
    if to_number(precomputed):
        return precomputed
    return _from_stats(entry, week, source_id)


def coalesce_actual(entry: RosterEntry, week: int) -> float:
    """Actual points scored by the entry's player in `week`."""
    return _coalesce(entry.total_points, entry, week, SOURCE_ACTUAL)


def coalesce_projected(entry: RosterEntry, week: int) -> float:
    """Projected points for the entry's player in `week`."""
    return _coalesce(entry.projected_total_points, entry, week, SOURCE_PROJECTED)
