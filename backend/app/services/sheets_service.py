"""
BarcodeSnap Backend — Google Sheets Service
=============================================

What:  Appends barcode values as new rows to a user's Google Sheet.
How:   A Sheets v4 client (google-api-python-client) authenticated with a
       service account (google-auth) is built ONCE at startup and wrapped in
       a SheetsConnector. The connector validates input, then calls
       spreadsheets.values.append in a worker thread.
Who:   Connector lives on app.state; routes receive it via Depends.
When:  Client built in the lifespan; append() per POST /upload-google-sheet.

Validation order (fail fast, nothing sent to Google on failure):
    1. sheetUrl must contain /d/<id>          → 400 "Invalid Google Sheet URL"
    2. barcodes must be a non-empty str list  → 400 "Data must be a non-empty array of strings"
    3. client must exist                      → 503 (credentials missing or rejected)

Concurrent appends to the same sheet are interleaved by Google; no ordering
is guaranteed between them.
"""

import json
import logging
import re
from typing import Any, List

from google.oauth2 import service_account
from googleapiclient.discovery import build
from starlette.concurrency import run_in_threadpool

from app.exceptions import SheetsServiceError, SheetsUnavailableError, ValidationError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Matches .../spreadsheets/d/<id>/edit...
SHEET_ID_PATTERN = re.compile(r"/d/([a-zA-Z0-9-_]+)")


def extract_sheet_id(sheet_url: Any) -> str:
    """
    Pull the spreadsheet ID out of a Google Sheets URL.

    >>> extract_sheet_id("https://docs.google.com/spreadsheets/d/ABC123/edit")
    'ABC123'

    Raises:
        ValidationError: Not a string, or no /d/<id> segment.
    """
    match = SHEET_ID_PATTERN.search(sheet_url) if isinstance(sheet_url, str) else None
    if not match:
        raise ValidationError(message="Invalid Google Sheet URL", field="sheetUrl")
    return match.group(1)


def validate_barcodes(barcodes: Any) -> List[str]:
    """Require a non-empty list whose every element is a string."""
    if (
        not isinstance(barcodes, list)
        or not barcodes
        or not all(isinstance(code, str) for code in barcodes)
    ):
        raise ValidationError(
            message="Data must be a non-empty array of strings",
            field="barcodes",
        )
    return barcodes


def build_sheets_client(credentials_json: str):
    """
    Authenticate with a service account and return a Sheets v4 resource.

    Args:
        credentials_json: Contents of the service account key file.

    Raises:
        ValueError / json.JSONDecodeError / google.auth exceptions on bad input.
    """
    info = json.loads(credentials_json)
    credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


class SheetsConnector:
    """
    Immutable handle around an authenticated Sheets client.

    Args:
        client:        Sheets v4 resource, or None when startup auth failed.
        target_range:  A1 range rows are appended to (e.g. "Sheet1!A:A").
        startup_error: Why the client is missing, reported with 503s.
    """

    __slots__ = ("_client", "_target_range", "_startup_error")

    def __init__(self, client=None, target_range: str = "Sheet1!A:A", startup_error: str = ""):
        self._client = client
        self._target_range = target_range
        self._startup_error = startup_error

    @property
    def available(self) -> bool:
        return self._client is not None

    @property
    def target_range(self) -> str:
        return self._target_range

    def _execute_append(self, sheet_id: str, rows: List[List[str]]) -> dict:
        request = self._client.spreadsheets().values().append(
            spreadsheetId=sheet_id,
            range=self._target_range,
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": rows},
        )
        return request.execute()

    async def append(self, sheet_url: Any, barcodes: Any) -> int:
        """
        Validate and append one row per barcode.

        Returns:
            Number of rows sent.

        Raises:
            ValidationError:         Bad URL or bad barcode array (400).
            SheetsUnavailableError:  No authenticated client (503).
            SheetsServiceError:      Google rejected or failed the call (500).
        """
        sheet_id = extract_sheet_id(sheet_url)
        logger.info("Sheet ID: %s", sheet_id)
        values = validate_barcodes(barcodes)

        if not self.available:
            raise SheetsUnavailableError(
                error=self._startup_error or "GOOGLE_CLOUD_CREDENTIALS is not configured",
            )

        rows = [[code] for code in values]
        logger.info("Appending %d barcode(s) to sheet %s (%s)", len(rows), sheet_id, self._target_range)
        try:
            await run_in_threadpool(self._execute_append, sheet_id, rows)
        except Exception as e:
            logger.error("Google Sheets API error: %s", str(e))
            raise SheetsServiceError(
                error=str(e),
                context={"sheet_id": sheet_id, "error_type": type(e).__name__},
            )
        return len(rows)


def create_sheets_connector(credentials_json: str, target_range: str) -> SheetsConnector:
    """
    Build the process-wide connector during startup.

    Never raises: a missing or rejected credential yields a connector with
    no client, so the rest of the service still starts.
    """
    if not credentials_json.strip():
        logger.warning("GOOGLE_CLOUD_CREDENTIALS not set; Google Sheets export disabled")
        return SheetsConnector(
            target_range=target_range,
            startup_error="GOOGLE_CLOUD_CREDENTIALS is not configured",
        )
    try:
        client = build_sheets_client(credentials_json)
    except Exception as e:
        logger.error("Google Sheets authentication failed: %s", str(e))
        return SheetsConnector(target_range=target_range, startup_error=str(e))

    logger.info("Google Sheets client ready (range=%s)", target_range)
    return SheetsConnector(client=client, target_range=target_range)
