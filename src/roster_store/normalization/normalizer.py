from typing import Dict, List, Optional, Protocol, Sequence

from loguru import logger

from roster_store.models.rows import (
    MemberRow,
    MemberTeamRow,
    NormalizedRoster,
    SportsKindRow,
    TeamRow,
)
from roster_store.models.team import TeamEntry


class NormalizationError(Exception):
    """Custom exception for roster normalization errors."""

    pass


class _NamedRow(Protocol):
    id: int
    name: str


def find_by_name(rows: Sequence[_NamedRow], name: str) -> Optional[int]:
    """Returns the id of the first row whose name equals `name`, or None.

    Compare the result with `is None`: a found id may be falsy.
    """
    for row in rows:
        if row.name == name:
            return row.id
    return None


class RosterNormalizer:
    """Flattens a team list into the four tables of the competition schema.

    Categories and members are deduplicated by name; teams and memberships
    are always new rows. Ids are assigned from 1 in first-seen order.
    """

    def normalize(self, teams: Sequence[TeamEntry]) -> NormalizedRoster:
        sports_kinds: List[SportsKindRow] = []
        team_rows: List[TeamRow] = []
        members: List[MemberRow] = []
        links: List[MemberTeamRow] = []
        counters: Dict[str, int] = {
            "sports_kinds": 0,
            "teams": 0,
            "members": 0,
            "members_teams": 0,
        }

        def next_id(table: str) -> int:
            counters[table] += 1
            return counters[table]

        logger.debug(f"Normalizing {len(teams)} team(s)")

        for team in teams:
            sports_kind_id = find_by_name(sports_kinds, team.sports_kind)
            if sports_kind_id is None:
                sports_kind_id = next_id("sports_kinds")
                sports_kinds.append(
                    SportsKindRow(id=sports_kind_id, name=team.sports_kind)
                )

            team_id = next_id("teams")
            team_rows.append(
                TeamRow(
                    id=team_id,
                    name=team.name,
                    sports_kind_id=sports_kind_id,
                    motto=team.motto,
                )
            )

            for member_name in team.member_names:
                member_id = find_by_name(members, member_name)
                if member_id is None:
                    record = team.get_member(member_name)
                    if record is None:
                        raise NormalizationError(
                            f"Team '{team.name}' lists member '{member_name}' "
                            "missing from its member directory"
                        )
                    member_id = next_id("members")
                    members.append(
                        MemberRow(
                            id=member_id, name=record.name, passport=record.passport
                        )
                    )

                links.append(
                    MemberTeamRow(
                        id=next_id("members_teams"),
                        member_id=member_id,
                        team_id=team_id,
                    )
                )

        logger.info(
            f"Normalization complete: {len(sports_kinds)} sports kinds, "
            f"{len(team_rows)} teams, {len(members)} members, {len(links)} memberships."
        )
        return NormalizedRoster(
            sports_kinds=sports_kinds,
            teams=team_rows,
            members=members,
            members_teams=links,
        )
