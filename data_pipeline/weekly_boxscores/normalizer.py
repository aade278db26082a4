"""
Normalizer/Joiner

Joins the independently fetched matchups, teams and members of one week into
one Boxscore per matchup.
"""

import logging
from typing import Dict, List, Optional

from data_pipeline.weekly_boxscores.config import TEAM_NAME_PLACEHOLDER
from data_pipeline.weekly_boxscores.models import (
    Boxscore,
    MatchupRecord,
    MemberRecord,
    RosterEntry,
    TeamMetadata,
    TeamRecord,
)

logger = logging.getLogger(__name__)


def resolve_team_name(team: TeamRecord) -> str:
    if team.name:
        return team.name
    location_nickname = f"{team.location or ''} {team.nickname or ''}".strip()
    if location_nickname:
        return location_nickname
    return TEAM_NAME_PLACEHOLDER.format(team_id=team.team_id)


def placeholder_metadata(team_id: Optional[int]) -> Optional[TeamMetadata]:
    if team_id is None:
        return None
    return TeamMetadata(
        team_id=team_id,
        name=TEAM_NAME_PLACEHOLDER.format(team_id=team_id),
        is_placeholder=True,
    )


def build_member_map(members: List[MemberRecord]) -> Dict[str, Optional[str]]:
    """Member id -> owner display name."""
    return {member.member_id: member.owner_name for member in members}


def build_team_metadata_map(teams: List[TeamRecord],
                            member_names: Dict[str, Optional[str]]) -> Dict[int, TeamMetadata]:
    """Team id -> resolved identity, with the owner name looked up by primary owner."""
    metadata = {}
    for team in teams:
        owner_id = team.primary_owner or (team.owners[0] if team.owners else None)
        metadata[team.team_id] = TeamMetadata(
            team_id=team.team_id,
            name=resolve_team_name(team),
            abbrev=team.abbrev,
            logo=team.logo,
            owner_id=owner_id,
            owner_name=member_names.get(owner_id) if owner_id else None,
            owners=list(team.owners),
        )
    return metadata


def build_roster_map(teams: List[TeamRecord]) -> Dict[int, List[RosterEntry]]:
    """Team id -> roster entries; a team without roster data maps to []."""
    return {team.team_id: list(team.roster or []) for team in teams}


def build_boxscores(teams: List[TeamRecord], matchups: List[MatchupRecord],
                    members: List[MemberRecord]) -> List[Boxscore]:
    """
    Produce one Boxscore per matchup.

    Unknown team ids resolve to an empty roster and placeholder metadata, so a
    matchup is never dropped for lack of team data.

    Args:
        teams: Teams with embedded rosters
        matchups: Matchups already filtered to the target week
        members: League members used for owner names

    Returns:
        List of Boxscore in matchup order
    """
    member_names = build_member_map(members)
    team_metadata = build_team_metadata_map(teams, member_names)
    rosters = build_roster_map(teams)

    boxscores = []
    for matchup in matchups:
        home_id = matchup.home_team_id
        away_id = matchup.away_team_id

        for team_id in (home_id, away_id):
            if team_id is not None and team_id not in team_metadata:
                logger.warning(f"Matchup {matchup.matchup_id} references unknown team {team_id}")

        boxscores.append(Boxscore(
            matchup_id=matchup.matchup_id,
            home_team_id=home_id,
            away_team_id=away_id,
            home_roster=rosters.get(home_id, []),
            away_roster=rosters.get(away_id, []),
            home_team_metadata=team_metadata.get(home_id) or placeholder_metadata(home_id),
            away_team_metadata=team_metadata.get(away_id) or placeholder_metadata(away_id),
            winner=matchup.winner,
        ))

    logger.debug(f"Built {len(boxscores)} boxscores from {len(teams)} teams")
    return boxscores
