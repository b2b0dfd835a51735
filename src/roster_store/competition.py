# src/roster_store/competition.py
from pathlib import Path
from typing import Dict, List, Optional, Type, Union

from loguru import logger

from roster_store.config.settings import AppSettings, settings as default_settings
from roster_store.exporters.csv_exporter import CsvExporter
from roster_store.models.connection import ConnectionParams
from roster_store.models.enums import SinkType, SourceFormat
from roster_store.models.rows import NormalizedRoster
from roster_store.models.team import TeamEntry
from roster_store.normalization.normalizer import RosterNormalizer
from roster_store.parsers.base_parser import BaseParser
from roster_store.parsers.json_parser import JSONParser
from roster_store.parsers.xml_parser import XMLParser
from roster_store.storage.observer import SessionObserver
from roster_store.storage.session import PersistResult, persist

PARSERS: Dict[SourceFormat, Type[BaseParser]] = {
    SourceFormat.JSON: JSONParser,
    SourceFormat.XML: XMLParser,
}


class CompetitionError(Exception):
    """Custom exception for misuse of the Competition workflow."""

    pass


class Competition:
    """Loads competition participants from a source and saves them to a sink."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        observer: Optional[SessionObserver] = None,
    ):
        self.settings = settings or default_settings
        self.observer = observer
        self.participants: Optional[List[TeamEntry]] = None

    def load_participants(
        self, source_format: Union[SourceFormat, str], location: str
    ) -> List[TeamEntry]:
        """Parses the participants document at `location` with the parser for its format."""
        parser = PARSERS[SourceFormat(source_format)]()
        self.participants = parser.parse_from_location(location)
        return self.participants

    def normalize(self) -> NormalizedRoster:
        if self.participants is None:
            raise CompetitionError("No participants loaded; call load_participants first")
        return RosterNormalizer().normalize(self.participants)

    def save_participants(
        self,
        sink: Union[SinkType, str],
        *,
        params: Optional[ConnectionParams] = None,
        output_dir: Optional[Union[str, Path]] = None,
    ) -> Union[PersistResult, List[Path]]:
        """Normalizes the loaded participants and writes them to `sink`.

        Returns the PersistResult for the database sink, or the written file
        paths for the CSV sink.
        """
        sink = SinkType(sink)
        roster = self.normalize()

        if sink == SinkType.CSV:
            exporter = CsvExporter(output_dir or self.settings.csv_output_dir)
            return exporter.export(roster)

        # Unvalidated fields, so bad settings come back as a failed result
        result = persist(
            params or self.settings.connection_fields(),
            roster,
            observer=self.observer,
            atomic=self.settings.db_atomic_writes,
        )
        if not result.success:
            logger.error(f"Failed to save participants: {result.error}")
        return result
