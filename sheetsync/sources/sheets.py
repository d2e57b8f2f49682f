"""Google Sheets API v4 row source."""

from urllib.parse import quote

import httpx

from sheetsync.credentials import SheetsCredential
from sheetsync.exceptions import SourceAccessError
from sheetsync.logging import get_logger
from sheetsync.models import RawRow

logger = get_logger(__name__)

BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_RANGE = "Sheet1!A:I"

_DENIED = (401, 403)


class SheetsSource:
    def __init__(self, credential: SheetsCredential) -> None:
        self._credential = credential

    def _get(self, sheet_id: str, path: str, params: dict | None = None) -> httpx.Response:
        try:
            return httpx.get(
                f"{BASE_URL}/{path}",
                headers=self._credential.headers,
                params={**self._credential.params, **(params or {})},
                timeout=30,
            )
        except httpx.HTTPError as exc:
            raise SourceAccessError(sheet_id, reason=f"{type(exc).__name__}: {exc}") from exc

    @staticmethod
    def _raise_for_status(sheet_id: str, response: httpx.Response) -> None:
        if response.is_error:
            raise SourceAccessError(
                sheet_id, response.status_code, reason=f"Sheets API returned HTTP {response.status_code}"
            )

    def check_access(self, sheet_id: str) -> bool:
        response = self._get(sheet_id, quote(sheet_id, safe=""), params={"fields": "spreadsheetId"})
        if response.status_code in (*_DENIED, 404):
            logger.debug("Access check for %s returned %d", sheet_id, response.status_code)
            return False
        self._raise_for_status(sheet_id, response)
        return True

    def fetch_rows(self, sheet_id: str, range_spec: str = DEFAULT_RANGE) -> list[RawRow]:
        """Return the data rows of ``range_spec``. The first row is the header."""
        response = self._get(sheet_id, f"{quote(sheet_id, safe='')}/values/{quote(range_spec, safe='')}")
        if response.status_code in _DENIED:
            raise SourceAccessError(sheet_id, response.status_code)
        self._raise_for_status(sheet_id, response)

        values = response.json().get("values") or []
        if not values:
            logger.info("No data found in %s", range_spec)
            return []
        # Header is sheet row 1, data starts at row 2
        return [RawRow.from_cells(cells, row_number=number) for number, cells in enumerate(values[1:], start=2)]
