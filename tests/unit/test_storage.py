"""Tests for the storage layer — memory, JSON file and Sheets backends, factory."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import gspread
import pytest

from cronjobs.storage import JsonFileBackend, MemoryBackend
from cronjobs.storage.sheets_backend import SheetsBackend


# ---------------------------------------------------------------------------
# Memory backend
# ---------------------------------------------------------------------------


class TestMemoryBackend:
    def test_get_absent(self) -> None:
        assert MemoryBackend().get("k") is None

    def test_set_get_delete(self) -> None:
        backend = MemoryBackend()
        backend.set("k", "v")
        assert backend.get("k") == "v"
        backend.delete("k")
        assert backend.get("k") is None

    def test_delete_absent_is_noop(self) -> None:
        MemoryBackend().delete("missing")

    def test_initial_values_are_copied(self) -> None:
        initial = {"k": "v"}
        backend = MemoryBackend(initial)
        backend.set("k", "changed")
        assert initial == {"k": "v"}


# ---------------------------------------------------------------------------
# JSON file backend
# ---------------------------------------------------------------------------


@pytest.fixture()
def json_path(tmp_path: Path) -> Path:
    return tmp_path / "state" / "cron_jobs.json"


@pytest.fixture()
def json_backend(json_path: Path) -> JsonFileBackend:
    return JsonFileBackend(json_path)


class TestJsonFileBackend:
    def test_missing_file_reads_absent(self, json_backend: JsonFileBackend, json_path: Path) -> None:
        assert json_backend.get("k") is None
        assert not json_path.exists()

    def test_set_creates_file(self, json_backend: JsonFileBackend, json_path: Path) -> None:
        json_backend.set("CRON_JOBS", "[]")
        assert json.loads(json_path.read_text(encoding="utf-8")) == {"CRON_JOBS": "[]"}

    def test_keeps_other_keys(self, json_backend: JsonFileBackend) -> None:
        json_backend.set("a", "1")
        json_backend.set("b", "2")
        json_backend.delete("a")
        assert json_backend.get("a") is None
        assert json_backend.get("b") == "2"

    def test_delete_absent_does_not_create_file(
        self, json_backend: JsonFileBackend, json_path: Path
    ) -> None:
        json_backend.delete("missing")
        assert not json_path.exists()

    def test_data_persists_across_instances(self, json_path: Path) -> None:
        JsonFileBackend(json_path).set("k", "v")
        assert JsonFileBackend(json_path).get("k") == "v"

    def test_corrupt_file_reads_absent(self, json_backend: JsonFileBackend, json_path: Path) -> None:
        json_path.parent.mkdir(parents=True)
        json_path.write_text("{not json", encoding="utf-8")
        assert json_backend.get("k") is None

    def test_non_object_file_reads_absent(
        self, json_backend: JsonFileBackend, json_path: Path
    ) -> None:
        json_path.parent.mkdir(parents=True)
        json_path.write_text('["k"]', encoding="utf-8")
        assert json_backend.get("k") is None

    def test_non_string_values_are_ignored(
        self, json_backend: JsonFileBackend, json_path: Path
    ) -> None:
        json_path.parent.mkdir(parents=True)
        json_path.write_text('{"k": 5, "s": "ok"}', encoding="utf-8")
        assert json_backend.get("k") is None
        assert json_backend.get("s") == "ok"

    def test_no_temp_files_left(self, json_backend: JsonFileBackend, json_path: Path) -> None:
        json_backend.set("k", "v")
        json_backend.set("k", "w")
        assert [p.name for p in json_path.parent.iterdir()] == ["cron_jobs.json"]


# ---------------------------------------------------------------------------
# Sheets backend
# ---------------------------------------------------------------------------


@pytest.fixture()
def sheets() -> tuple[SheetsBackend, MagicMock]:
    """A SheetsBackend wired to a mocked gspread worksheet."""
    with patch("cronjobs.storage.sheets_backend.gspread") as mock_gspread:
        mock_gc = MagicMock()
        mock_gspread.service_account_from_dict.return_value = mock_gc
        mock_ws = MagicMock()
        mock_gc.open.return_value.worksheet.return_value = mock_ws
        backend = SheetsBackend(json.dumps({"type": "service_account"}), sheet_name="Test")
    return backend, mock_ws


class TestSheetsBackend:
    def test_opens_properties_worksheet(self) -> None:
        with patch("cronjobs.storage.sheets_backend.gspread") as mock_gspread:
            mock_gc = mock_gspread.service_account_from_dict.return_value
            SheetsBackend(json.dumps({"type": "service_account"}), sheet_name="Test")

        mock_gc.open.assert_called_once_with("Test")
        mock_gc.open.return_value.worksheet.assert_called_once_with("Properties")

    def test_creates_missing_worksheet_with_header(self) -> None:
        with patch("cronjobs.storage.sheets_backend.gspread") as mock_gspread:
            mock_gspread.WorksheetNotFound = gspread.WorksheetNotFound
            spreadsheet = mock_gspread.service_account_from_dict.return_value.open.return_value
            spreadsheet.worksheet.side_effect = gspread.WorksheetNotFound("Properties")
            SheetsBackend(json.dumps({"type": "service_account"}))

        spreadsheet.add_worksheet.assert_called_once()
        new_ws = spreadsheet.add_worksheet.return_value
        new_ws.append_row.assert_called_once_with(["key", "value"], value_input_option="RAW")

    def test_get_existing(self, sheets: tuple[SheetsBackend, MagicMock]) -> None:
        backend, ws = sheets
        ws.get_all_values.return_value = [["key", "value"], ["CRON_JOBS", "[]"]]
        assert backend.get("CRON_JOBS") == "[]"

    def test_get_absent(self, sheets: tuple[SheetsBackend, MagicMock]) -> None:
        backend, ws = sheets
        ws.get_all_values.return_value = [["key", "value"]]
        assert backend.get("CRON_JOBS") is None

    def test_get_read_failure_is_absent(self, sheets: tuple[SheetsBackend, MagicMock]) -> None:
        backend, ws = sheets
        ws.get_all_values.side_effect = gspread.exceptions.GSpreadException("quota")
        assert backend.get("CRON_JOBS") is None

    def test_set_appends_new_key(self, sheets: tuple[SheetsBackend, MagicMock]) -> None:
        backend, ws = sheets
        ws.get_all_values.return_value = [["key", "value"]]
        backend.set("CRON_JOBS", "[]")
        ws.append_row.assert_called_once_with(["CRON_JOBS", "[]"], value_input_option="RAW")

    def test_set_updates_existing_key(self, sheets: tuple[SheetsBackend, MagicMock]) -> None:
        backend, ws = sheets
        ws.get_all_values.return_value = [["key", "value"], ["OTHER", "x"], ["CRON_JOBS", "[]"]]
        backend.set("CRON_JOBS", '[["1"]]')
        ws.update_cell.assert_called_once_with(3, 2, '[["1"]]')
        ws.append_row.assert_not_called()

    def test_delete_removes_row(self, sheets: tuple[SheetsBackend, MagicMock]) -> None:
        backend, ws = sheets
        ws.get_all_values.return_value = [["key", "value"], ["CRON_JOBS", "[]"]]
        backend.delete("CRON_JOBS")
        ws.delete_rows.assert_called_once_with(2)

    def test_delete_absent_is_noop(self, sheets: tuple[SheetsBackend, MagicMock]) -> None:
        backend, ws = sheets
        ws.get_all_values.return_value = [["key", "value"]]
        backend.delete("CRON_JOBS")
        ws.delete_rows.assert_not_called()


# ---------------------------------------------------------------------------
# Storage factory tests
# ---------------------------------------------------------------------------


class TestStorageFactory:
    """Test create_storage_backend factory function."""

    def test_json_backend_by_default(self) -> None:
        from cronjobs.storage import create_storage_backend

        settings = MagicMock()
        settings.storage_backend = "json"
        settings.jobs_file_path = "cron_jobs.json"

        backend = create_storage_backend(settings)
        assert isinstance(backend, JsonFileBackend)
        assert backend.path == Path("cron_jobs.json")

    def test_memory_backend(self) -> None:
        from cronjobs.storage import create_storage_backend

        settings = MagicMock()
        settings.storage_backend = "memory"

        assert isinstance(create_storage_backend(settings), MemoryBackend)

    def test_json_fallback_when_sheets_has_no_credentials(self) -> None:
        from cronjobs.storage import create_storage_backend

        settings = MagicMock()
        settings.storage_backend = "sheets"
        settings.google_credentials_json = ""
        settings.jobs_file_path = "cron_jobs.json"

        assert isinstance(create_storage_backend(settings), JsonFileBackend)

    def test_json_fallback_when_sheets_init_fails(self) -> None:
        from cronjobs.storage import create_storage_backend

        settings = MagicMock()
        settings.storage_backend = "sheets"
        settings.google_credentials_json = '{"invalid": "creds"}'
        settings.google_sheet_name = "Test"
        settings.jobs_file_path = "cron_jobs.json"

        # SheetsBackend init fails with invalid creds → fallback to JSON file
        assert isinstance(create_storage_backend(settings), JsonFileBackend)

    @patch("cronjobs.storage.sheets_backend.gspread")
    def test_sheets_backend_when_configured(self, mock_gspread: MagicMock) -> None:
        from cronjobs.storage import create_storage_backend

        settings = MagicMock()
        settings.storage_backend = "sheets"
        settings.google_credentials_json = json.dumps({"type": "service_account"})
        settings.google_sheet_name = "Test Sheet"
        settings.jobs_file_path = "cron_jobs.json"

        backend = create_storage_backend(settings)

        assert isinstance(backend, SheetsBackend)
        mock_gspread.service_account_from_dict.return_value.open.assert_called_once_with(
            "Test Sheet"
        )


# ---------------------------------------------------------------------------
# SheetsBackend credential parsing tests
# ---------------------------------------------------------------------------


class TestCredentialParsing:
    """Test _parse_credentials handles JSON and base64."""

    def test_raw_json_string(self) -> None:
        from cronjobs.storage.sheets_backend import _parse_credentials

        creds = '{"type": "service_account", "project_id": "test"}'
        assert _parse_credentials(creds)["type"] == "service_account"

    def test_base64_encoded_json(self) -> None:
        import base64

        from cronjobs.storage.sheets_backend import _parse_credentials

        encoded = base64.b64encode(b'{"type": "service_account"}').decode()
        assert _parse_credentials(encoded)["type"] == "service_account"

    def test_invalid_credentials_raises(self) -> None:
        from cronjobs.storage.sheets_backend import _parse_credentials

        with pytest.raises(ValueError, match="must be valid JSON"):
            _parse_credentials("not-json-not-base64!!!")
