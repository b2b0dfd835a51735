import json
from typing import Any, List

from loguru import logger
from pydantic import ValidationError

from roster_store.models.enums import SourceFormat
from roster_store.models.team import MemberRecord, TeamEntry

from .base_parser import BaseParser, ParserError


class JSONParser(BaseParser):
    """Parses teams from a JSON list, or an object holding a "teams" list."""

    source_format = SourceFormat.JSON

    def parse_from_string(self, document: str) -> List[TeamEntry]:
        try:
            data = json.loads(document)
        except json.JSONDecodeError as e:
            logger.error(f"Participants JSON has syntax errors: {e}")
            raise ParserError(f"Malformed JSON: {e}") from e

        if isinstance(data, dict):
            data = data.get("teams")
        if not isinstance(data, list):
            raise ParserError("Expected a list of teams or an object with a 'teams' list")

        return [self._parse_team(index, raw) for index, raw in enumerate(data)]

    def _parse_team(self, index: int, raw: Any) -> TeamEntry:
        if not isinstance(raw, dict):
            raise ParserError(f"Team #{index} is not an object")
        raw_members = raw.get("members") or []
        if not isinstance(raw_members, list):
            raise ParserError(f"Team #{index} 'members' is not a list")
        try:
            members = [MemberRecord.model_validate(m) for m in raw_members]
            return TeamEntry.from_members(
                name=raw.get("name"),
                sports_kind=raw.get("sports_kind"),
                motto=raw.get("motto"),
                members=members,
            )
        except ValidationError as e:
            raise ParserError(f"Team #{index} is invalid: {e}") from e
