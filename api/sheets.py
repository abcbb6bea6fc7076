import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List

import gspread
from google.auth.exceptions import GoogleAuthError
from oauth2client.client import Error as OAuthError
from oauth2client.service_account import ServiceAccountCredentials

from api.config import Settings
from api.errors import ConfigurationDefect, UpstreamFailure

logger = logging.getLogger(__name__)

SCOPE = ["https://spreadsheets.google.com/feeds", "https://www.googleapis.com/auth/drive"]


@dataclass
class Table:
    header: List[str]
    records: List[Dict[str, str]] = field(default_factory=list)


def rows_to_table(values: List[List[str]]) -> Table:
    """First row is the header; every other row becomes a record keyed by it."""
    if not values:
        raise ConfigurationDefect("worksheet is empty, no header row")

    header = [str(h).strip() for h in values[0]]
    records = []
    for row in values[1:]:
        cells = list(row) + [""] * (len(header) - len(row))
        records.append({name: cells[i] for i, name in enumerate(header) if name})
    return Table(header=header, records=records)


class SheetSource:
    """Read-only access to the results worksheet."""

    def __init__(self, settings: Settings):
        if not (settings.google_credentials or settings.credentials_file):
            raise ConfigurationDefect(
                "no credentials: set GOOGLE_CREDENTIALS or GOOGLE_APPLICATION_CREDENTIALS")
        if not (settings.sheet_id or settings.sheet_name):
            raise ConfigurationDefect("no spreadsheet: set SHEET_ID or SHEET_NAME")
        self.settings = settings

    def _credentials(self):
        if self.settings.google_credentials:
            try:
                creds_dict = json.loads(self.settings.google_credentials)
                return ServiceAccountCredentials.from_json_keyfile_dict(creds_dict, SCOPE)
            except (ValueError, KeyError) as e:
                raise ConfigurationDefect("GOOGLE_CREDENTIALS is not a valid service-account key") from e
        try:
            return ServiceAccountCredentials.from_json_keyfile_name(self.settings.credentials_file, SCOPE)
        except (OSError, ValueError, KeyError) as e:
            raise ConfigurationDefect(
                f"cannot read key file {self.settings.credentials_file}") from e

    def _client(self) -> gspread.Client:
        return gspread.authorize(self._credentials())

    def _worksheet(self, client: gspread.Client):
        if self.settings.sheet_id:
            spreadsheet = client.open_by_key(self.settings.sheet_id)
        else:
            spreadsheet = client.open(self.settings.sheet_name)

        if self.settings.worksheet_name:
            return spreadsheet.worksheet(self.settings.worksheet_name)
        worksheet = spreadsheet.get_worksheet(self.settings.worksheet_index)
        if worksheet is None:
            raise gspread.exceptions.WorksheetNotFound(
                f"index {self.settings.worksheet_index}")
        return worksheet

    def fetch_table(self) -> Table:
        """Read every row in a single call. Blocking; no retries."""
        try:
            worksheet = self._worksheet(self._client())
            values = worksheet.get_all_values()
        except (gspread.exceptions.SpreadsheetNotFound, gspread.exceptions.WorksheetNotFound) as e:
            raise ConfigurationDefect(f"spreadsheet or worksheet not found: {e}") from e
        except (gspread.exceptions.GSpreadException, GoogleAuthError, OAuthError, OSError) as e:
            raise UpstreamFailure(f"sheet fetch failed: {e}") from e

        table = rows_to_table(values)
        logger.info("Fetched %d rows from worksheet '%s'", len(table.records), worksheet.title)
        return table
