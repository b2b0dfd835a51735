import csv
from pathlib import Path
from typing import List, Union

from loguru import logger

from roster_store.models.rows import (
    MemberRow,
    MemberTeamRow,
    NormalizedRoster,
    SportsKindRow,
    TeamRow,
)

# Header rows are written even for empty tables
COLUMNS = {
    "sports_kinds": list(SportsKindRow.model_fields),
    "teams": list(TeamRow.model_fields),
    "members": list(MemberRow.model_fields),
    "members_teams": list(MemberTeamRow.model_fields),
}


class CsvExporter:
    """Writes a normalized roster as one CSV file per table."""

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)

    def export(self, roster: NormalizedRoster) -> List[Path]:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        written: List[Path] = []

        for table, rows in roster.tables():
            path = self.output_dir / f"{table}.csv"
            with open(path, "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=COLUMNS[table])
                writer.writeheader()
                for row in rows:
                    # csv writes None as an empty cell
                    writer.writerow(row.model_dump())
            logger.debug(f"Wrote {len(rows)} rows to {path}")
            written.append(path)

        logger.success(f"Exported roster to {self.output_dir}")
        return written
