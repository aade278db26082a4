"""
Canonical records passed between the source adapter, normalizer and writer.

The source adapter is the only place that sees raw upstream JSON; everything
downstream works on these types.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class StatRecord:
    """One entry of a player's per-period stats array."""
    scoring_period_id: Optional[int]
    stat_split_type_id: Optional[int]
    stat_source_id: Optional[int]
    applied_total: Optional[float] = None


@dataclass
class RosterEntry:
    """A single roster slot with its player, regardless of upstream shape."""
    player_id: Optional[int]
    full_name: Optional[str] = None
    default_position_id: Optional[int] = None
    lineup_slot_id: Optional[int] = None
    total_points: Optional[float] = None
    projected_total_points: Optional[float] = None
    stats: List[StatRecord] = field(default_factory=list)


@dataclass
class MemberRecord:
    """League member (a manager who may own teams)."""
    member_id: str
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def owner_name(self) -> Optional[str]:
        if self.display_name:
            return self.display_name
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or None


@dataclass
class TeamRecord:
    """Team as returned by the roster view; roster is None when the view omitted it."""
    team_id: int
    name: Optional[str] = None
    location: Optional[str] = None
    nickname: Optional[str] = None
    abbrev: Optional[str] = None
    logo: Optional[str] = None
    primary_owner: Optional[str] = None
    owners: List[str] = field(default_factory=list)
    roster: Optional[List[RosterEntry]] = None


@dataclass
class MatchupRecord:
    """Schedule entry for one head-to-head pairing."""
    matchup_id: int
    matchup_period_id: Optional[int]
    home_team_id: Optional[int]
    away_team_id: Optional[int]
    winner: Optional[str] = None


@dataclass
class RawWeek:
    """Everything fetched for one league/season/week."""
    week: int
    matchups: List[MatchupRecord]
    teams: List[TeamRecord]
    members: List[MemberRecord]


@dataclass
class TeamMetadata:
    """Resolved identity of a fantasy team."""
    team_id: Optional[int]
    name: str
    abbrev: Optional[str] = None
    logo: Optional[str] = None
    owner_id: Optional[str] = None
    owner_name: Optional[str] = None
    owners: List[str] = field(default_factory=list)
    is_placeholder: bool = False


@dataclass
class Boxscore:
    """One matchup joined with both sides' rosters and identities."""
    matchup_id: int
    home_team_id: Optional[int]
    away_team_id: Optional[int]
    home_roster: List[RosterEntry]
    away_roster: List[RosterEntry]
    home_team_metadata: Optional[TeamMetadata]
    away_team_metadata: Optional[TeamMetadata]
    winner: Optional[str] = None

    def sides(self):
        """Yield (team_id, roster, metadata) for home then away."""
        yield self.home_team_id, self.home_roster, self.home_team_metadata
        yield self.away_team_id, self.away_roster, self.away_team_metadata
