from abc import ABC, abstractmethod
from typing import List, Optional

from loguru import logger

from roster_store.models.enums import SourceFormat
from roster_store.models.team import TeamEntry
from roster_store.sources.loader import SourceLoader


class ParserError(Exception):
    """Custom exception for malformed participants documents."""

    pass


class BaseParser(ABC):
    """Abstract base class for participants document parsers."""

    source_format: SourceFormat

    def __init__(self, loader: Optional[SourceLoader] = None):
        self.loader = loader

    @abstractmethod
    def parse_from_string(self, document: str) -> List[TeamEntry]:
        """Parse a document into the ordered team list.

        Args:
            document: The full document text.

        Returns:
            Team entries in document order.
        """
        pass

    def parse_from_location(self, location: str) -> List[TeamEntry]:
        """Loads the document at a file path or URL and parses it."""
        loader = self.loader or SourceLoader()
        try:
            document = loader.load(location)
        finally:
            if self.loader is None:
                loader.close()
        teams = self.parse_from_string(document)
        logger.info(
            f"Parsed {len(teams)} team(s) from {location} ({self.source_format.value})"
        )
        return teams
