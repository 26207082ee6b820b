"""Google Sheets storage backend — persistent cloud storage via gspread.

Values live in a two-column ``key`` / ``value`` worksheet. A single cell holds
at most 50,000 characters, which caps the size of the stored job list.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any

import gspread
from gspread import BackOffHTTPClient, Spreadsheet, Worksheet

logger = logging.getLogger(__name__)

WORKSHEET_TITLE = "Properties"
COLUMNS: tuple[str, ...] = ("key", "value")

_VALUE_COL = COLUMNS.index("value") + 1


def _parse_credentials(raw: str) -> dict[str, Any]:
    """Parse credentials from raw JSON string or base64-encoded JSON."""
    stripped = raw.strip()

    if stripped.startswith("{"):
        return json.loads(stripped)

    try:
        missing_padding = len(stripped) % 4
        if missing_padding:
            stripped += "=" * (4 - missing_padding)

        decoded = base64.b64decode(stripped).decode("utf-8")
        return json.loads(decoded)
    except Exception as exc:
        msg = "GOOGLE_CREDENTIALS_JSON must be valid JSON or base64-encoded JSON"
        raise ValueError(msg) from exc


def _get_or_create_worksheet(spreadsheet: Spreadsheet, title: str) -> Worksheet:
    """Get the key-value worksheet, creating it with a header row if missing."""
    try:
        return spreadsheet.worksheet(title)
    except gspread.WorksheetNotFound:
        ws = spreadsheet.add_worksheet(title=title, rows=100, cols=len(COLUMNS))
        ws.append_row(list(COLUMNS), value_input_option="RAW")
        logger.info("Created worksheet: %s", title)
        return ws


class SheetsBackend:
    """Key-value store backed by a Google Sheets worksheet."""

    def __init__(
        self,
        credentials_json: str,
        sheet_name: str = "Cron Jobs",
    ) -> None:
        creds = _parse_credentials(credentials_json)
        self._gc = gspread.service_account_from_dict(
            creds,
            http_client=BackOffHTTPClient,
        )
        self._spreadsheet = self._open_or_create(sheet_name)
        self._ws = _get_or_create_worksheet(self._spreadsheet, WORKSHEET_TITLE)

    def _open_or_create(self, name: str) -> Spreadsheet:
        """Open a spreadsheet by name, or create it if not found."""
        try:
            spreadsheet = self._gc.open(name)
            logger.info("Opened spreadsheet: %s", name)
            return spreadsheet
        except gspread.SpreadsheetNotFound:
            spreadsheet = self._gc.create(name)
            logger.info("Created spreadsheet: %s", name)
            return spreadsheet

    def _find_row(self, key: str) -> tuple[int, list[str]] | None:
        """Return the 1-indexed row number and cells holding ``key``."""
        # Row 1 is the header
        for row_idx, row in enumerate(self._ws.get_all_values()[1:], start=2):
            if row and str(row[0]) == key:
                return row_idx, [str(cell) for cell in row]
        return None

    def get(self, key: str) -> str | None:
        try:
            found = self._find_row(key)
        except gspread.exceptions.GSpreadException:
            logger.warning("Failed to read '%s' from Sheets, treating as absent", key)
            return None
        if found is None:
            return None
        _, cells = found
        return cells[1] if len(cells) > 1 else ""

    def set(self, key: str, value: str) -> None:
        found = self._find_row(key)
        if found is None:
            self._ws.append_row([key, value], value_input_option="RAW")
        else:
            row_idx, _ = found
            self._ws.update_cell(row_idx, _VALUE_COL, value)
        logger.debug("Stored '%s' in Sheets", key)

    def delete(self, key: str) -> None:
        found = self._find_row(key)
        if found is None:
            return
        row_idx, _ = found
        self._ws.delete_rows(row_idx)
        logger.debug("Deleted '%s' from Sheets (row %d)", key, row_idx)
