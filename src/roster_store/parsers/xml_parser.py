import xml.etree.ElementTree as ET
from typing import List, Optional

from loguru import logger
from pydantic import ValidationError

from roster_store.models.enums import SourceFormat
from roster_store.models.team import MemberRecord, TeamEntry

from .base_parser import BaseParser, ParserError


def _field(element: ET.Element, key: str) -> Optional[str]:
    """Reads `key` from an attribute, falling back to a child element's text."""
    value = element.get(key)
    if value is None:
        child = element.find(key)
        if child is not None and child.text is not None:
            value = child.text.strip()
    return value


class XMLParser(BaseParser):
    """Parses <team> elements found under the document root.

    Each team carries name, sports_kind and an optional motto, plus a
    <members> element listing <member> entries with name and passport.
    Fields may be given as attributes or child elements.
    """

    source_format = SourceFormat.XML

    def parse_from_string(self, document: str) -> List[TeamEntry]:
        try:
            root = ET.fromstring(document)
        except ET.ParseError as e:
            logger.error(f"Participants XML is not well-formed: {e}")
            raise ParserError(f"Malformed XML: {e}") from e

        return [
            self._parse_team(index, element)
            for index, element in enumerate(root.iter("team"))
        ]

    def _parse_team(self, index: int, element: ET.Element) -> TeamEntry:
        members: List[MemberRecord] = []
        try:
            for member in element.findall("./members/member"):
                members.append(
                    MemberRecord(
                        name=_field(member, "name"),
                        passport=_field(member, "passport"),
                    )
                )
            return TeamEntry.from_members(
                name=_field(element, "name"),
                sports_kind=_field(element, "sports_kind"),
                motto=_field(element, "motto"),
                members=members,
            )
        except ValidationError as e:
            raise ParserError(f"Team #{index} is invalid: {e}") from e
