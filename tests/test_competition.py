"""End-to-end tests for the Competition workflow and its sinks"""
import csv
import json

import pytest

from roster_store.competition import Competition, CompetitionError
from roster_store.config.settings import AppSettings
from roster_store.exporters.csv_exporter import CsvExporter
from roster_store.models.enums import DbDriver, SinkType, SourceFormat
from roster_store.normalization.normalizer import RosterNormalizer


def _read_csv(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


@pytest.fixture
def teams_file(tmp_path):
    path = tmp_path / "teams.json"
    path.write_text(
        json.dumps(
            [
                {
                    "name": "Falcons",
                    "sports_kind": "Chess",
                    "motto": "Fly high",
                    "members": [{"name": "Alice", "passport": "P1"}],
                },
                {"name": "Eagles", "sports_kind": "Go", "members": []},
            ]
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def app_settings(db_path, tmp_path):
    return AppSettings(
        db_driver=DbDriver.SQLITE,
        db_database=str(db_path),
        csv_output_dir=str(tmp_path / "export"),
    )


class TestCsvExporter:

    def test_writes_four_files(self, tmp_path, falcons_and_eagles):
        roster = RosterNormalizer().normalize(falcons_and_eagles)
        paths = CsvExporter(tmp_path / "out").export(roster)

        assert [p.name for p in paths] == [
            "sports_kinds.csv",
            "teams.csv",
            "members.csv",
            "members_teams.csv",
        ]
        assert _read_csv(paths[1]) == [
            ["id", "name", "sports_kind_id", "motto"],
            ["1", "Falcons", "1", "Fly high"],
            ["2", "Eagles", "1", ""],
        ]
        assert _read_csv(paths[3])[1:] == [["1", "1", "1"], ["2", "2", "1"], ["3", "1", "2"], ["4", "3", "2"]]

    def test_empty_roster_writes_headers_only(self, tmp_path):
        paths = CsvExporter(tmp_path).export(RosterNormalizer().normalize([]))
        assert _read_csv(paths[2]) == [["id", "name", "passport"]]


class TestCompetition:

    def test_json_to_database(self, app_settings, teams_file, fetch_rows):
        competition = Competition(settings=app_settings)
        competition.load_participants(SourceFormat.JSON, str(teams_file))

        result = competition.save_participants(SinkType.DB)

        assert result.success
        assert fetch_rows("sports_kinds") == [(1, "Chess"), (2, "Go")]
        assert fetch_rows("teams") == [(1, "Falcons", 1, "Fly high"), (2, "Eagles", 2, None)]
        assert fetch_rows("members_teams") == [(1, 1, 1)]

    def test_json_to_csv_with_string_selectors(self, app_settings, teams_file, tmp_path):
        competition = Competition(settings=app_settings)
        competition.load_participants("json", str(teams_file))

        paths = competition.save_participants("csv")

        assert all(p.parent == tmp_path / "export" for p in paths)
        assert _read_csv(paths[0])[1:] == [["1", "Chess"], ["2", "Go"]]

    def test_bad_database_settings_give_failed_result(self, teams_file):
        settings = AppSettings(db_driver=DbDriver.MYSQL, db_host=None, db_database="comp")
        competition = Competition(settings=settings)
        competition.load_participants(SourceFormat.JSON, str(teams_file))

        result = competition.save_participants(SinkType.DB)

        assert not result.success
        assert result.error.kind == "ConfigurationError"

    def test_save_before_load(self, app_settings):
        with pytest.raises(CompetitionError):
            Competition(settings=app_settings).save_participants(SinkType.CSV)

    def test_unknown_selectors(self, app_settings, teams_file):
        competition = Competition(settings=app_settings)
        with pytest.raises(ValueError):
            competition.load_participants("yaml", str(teams_file))
        competition.load_participants("json", str(teams_file))
        with pytest.raises(ValueError):
            competition.save_participants("parquet")


class TestSettings:

    def test_connection_params_from_settings(self, app_settings, db_path):
        params = app_settings.connection_params()
        assert params.driver == DbDriver.SQLITE
        assert params.database == str(db_path)
        assert params.describe() == f"sqlite:{db_path}"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DB_DRIVER", "postgresql")
        monkeypatch.setenv("DB_HOST", "db.internal")
        monkeypatch.setenv("DB_DATABASE", "competition")
        monkeypatch.setenv("DB_ATOMIC_WRITES", "true")

        settings = AppSettings()

        assert settings.db_atomic_writes is True
        assert settings.connection_params().describe() == "postgresql://@db.internal/competition"
