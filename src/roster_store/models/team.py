# src/roster_store/models/team.py
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MemberRecord(BaseModel):
    """A competition participant as described by the source document."""

    model_config = ConfigDict(frozen=True)

    name: str
    passport: str


class TeamEntry(BaseModel):
    """A team as produced by a source parser, before normalization."""

    model_config = ConfigDict(frozen=True)

    name: str
    sports_kind: str
    motto: Optional[str] = None
    # Listed order is preserved; a name may appear more than once
    member_names: List[str] = Field(default_factory=list)
    # Directory of full member records keyed by member name
    members: Dict[str, MemberRecord] = Field(default_factory=dict)

    @classmethod
    def from_members(
        cls,
        name: str,
        sports_kind: str,
        members: List[MemberRecord],
        motto: Optional[str] = None,
    ) -> "TeamEntry":
        """Builds an entry from an ordered member list, keeping the first record per name."""
        directory: Dict[str, MemberRecord] = {}
        for member in members:
            directory.setdefault(member.name, member)
        return cls(
            name=name,
            sports_kind=sports_kind,
            motto=motto,
            member_names=[m.name for m in members],
            members=directory,
        )

    def get_member(self, name: str) -> Optional[MemberRecord]:
        return self.members.get(name)
