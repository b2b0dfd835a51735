from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Table names double as CSV file stems
SPORTS_KINDS = "sports_kinds"
TEAMS = "teams"
MEMBERS = "members"
MEMBERS_TEAMS = "members_teams"

# Every foreign key points at a table earlier in this list
WRITE_ORDER: Tuple[str, ...] = (SPORTS_KINDS, TEAMS, MEMBERS, MEMBERS_TEAMS)


class SportsKindRow(BaseModel):
    """A row of the `sports_kinds` table."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class MemberRow(BaseModel):
    """A row of the `members` table."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    passport: str


class TeamRow(BaseModel):
    """A row of the `teams` table."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    sports_kind_id: int  # FK to SportsKindRow.id
    motto: Optional[str] = None


class MemberTeamRow(BaseModel):
    """A row of the `members_teams` link table."""

    model_config = ConfigDict(frozen=True)

    id: int
    member_id: int  # FK to MemberRow.id
    team_id: int  # FK to TeamRow.id


class NormalizedRoster(BaseModel):
    """The four collections produced by one normalization pass."""

    sports_kinds: List[SportsKindRow] = Field(default_factory=list)
    teams: List[TeamRow] = Field(default_factory=list)
    members: List[MemberRow] = Field(default_factory=list)
    members_teams: List[MemberTeamRow] = Field(default_factory=list)

    def tables(self) -> List[Tuple[str, List[BaseModel]]]:
        """Returns (table name, rows) pairs in dependency order."""
        return [(name, list(getattr(self, name))) for name in WRITE_ORDER]

    def is_empty(self) -> bool:
        return not any(rows for _, rows in self.tables())
