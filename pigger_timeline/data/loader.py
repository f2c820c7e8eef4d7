"""
Feed loading: fetch the task CSV from the configured endpoint and normalise
it into a string-typed DataFrame with one row per task or milestone.
"""

from __future__ import annotations

import io
import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import unquote, urlparse

import gspread
import pandas as pd
import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from pigger_timeline.config import FEED_URL_KEY, feed_timeout_seconds, get_secret

logger = logging.getLogger(__name__)

FEED_COLUMNS: List[str] = [
    "Person",
    "Task",
    "Start",
    "End",
    "Type",
    "Status",
    "Progress",
    "Color",
    "Note",
    "URL",
]
REQUIRED_COLUMNS: List[str] = FEED_COLUMNS[:6]

SHEET_SCHEME = "gsheet"
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/drive.readonly",
]
CREDENTIALS_TMP_PATH = "/tmp/google-credentials.json"


class FeedError(RuntimeError):
    """Base class for feed failures surfaced to the dashboard."""


class FetchError(FeedError):
    """The feed endpoint could not be reached or returned an error."""


class ParseError(FeedError):
    """The feed text does not tokenize into the expected rows and columns."""


@dataclass
class FeedResult:
    rows: Optional[pd.DataFrame] = None
    error: Optional[FeedError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.rows is not None


def resolve_endpoint() -> str:
    """Read the feed endpoint from env / secrets. Called on every fetch."""
    endpoint = (get_secret(FEED_URL_KEY) or "").strip()
    if not endpoint:
        raise FetchError(f"{FEED_URL_KEY} env var missing (env or secrets).")
    return endpoint


def endpoint_kind(endpoint: str) -> str:
    scheme = urlparse(endpoint).scheme.lower()
    if scheme == SHEET_SCHEME:
        return "sheet"
    if scheme in ("http", "https"):
        return "http"
    return "file"


def _repair_json_private_key(text: str) -> str:
    """If JSON text contains an unescaped multi-line private_key, escape newlines.
    This fixes the common case when TOML triple-quoted strings preserve newlines.
    """
    pattern = r'"private_key"\s*:\s*"(.*?)"'
    def _repl(m: re.Match[str]) -> str:
        val = m.group(1)
        val = val.replace("\r\n", "\\n").replace("\n", "\\n")
        return f'"private_key": "{val}"'
    return re.sub(pattern, _repl, text, flags=re.DOTALL)


def materialize_credentials(path_or_json: str) -> str:
    """If GOOGLE_APPLICATION_CREDENTIALS is JSON content, write it to
    `CREDENTIALS_TMP_PATH` and return that path; a path is returned unchanged.
    """
    if os.path.exists(path_or_json):
        return path_or_json
    text = path_or_json.strip()
    if not (text.startswith("{") and text.endswith("}")):
        # Not JSON-like, treat as file path
        return path_or_json
    content = text
    try:
        json.loads(content)
    except ValueError:
        content = _repair_json_private_key(content)
    with open(CREDENTIALS_TMP_PATH, "w", encoding="utf-8") as f:
        f.write(content)
    return CREDENTIALS_TMP_PATH


def _split_sheet_endpoint(endpoint: str) -> Tuple[str, Optional[str]]:
    parsed = urlparse(endpoint)
    spreadsheet_id = parsed.netloc
    worksheet = unquote(parsed.path.strip("/")) or None
    if not spreadsheet_id:
        raise FetchError(f"Sheet endpoint has no spreadsheet id: {endpoint}")
    return spreadsheet_id, worksheet


def _fetch_sheet_values(endpoint: str) -> List[List[str]]:
    spreadsheet_id, worksheet = _split_sheet_endpoint(endpoint)
    service_account_raw = get_secret("GOOGLE_APPLICATION_CREDENTIALS", "google-credentials.json")
    service_account_file = materialize_credentials(service_account_raw or "")
    if not os.path.exists(service_account_file):
        raise FetchError(f"Service account file not found: {service_account_file}")
    try:
        credentials = Credentials.from_service_account_file(service_account_file, scopes=SCOPES)
        client = gspread.authorize(credentials)
        ss = client.open_by_key(spreadsheet_id)
        ws = ss.worksheet(worksheet) if worksheet else ss.sheet1
        return ws.get_all_values()
    except (gspread.exceptions.GSpreadException, GoogleAuthError, requests.RequestException, ValueError) as exc:
        raise FetchError(f"Could not read sheet {spreadsheet_id!r}: {exc}") from exc


def _fetch_http_text(endpoint: str, timeout: float, session=None) -> str:
    http = session or requests
    try:
        resp = http.get(endpoint, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise FetchError(f"Could not fetch feed from {endpoint}: {exc}") from exc
    try:
        return resp.content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Feed from {endpoint} is not UTF-8 text: {exc}") from exc


def _read_file_text(endpoint: str) -> str:
    parsed = urlparse(endpoint)
    path = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(endpoint)
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Feed file {path} is not UTF-8 text: {exc}") from exc
    except OSError as exc:
        raise FetchError(f"Could not read feed file {path}: {exc}") from exc


def normalize_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Align columns to the feed header and coerce every value to a stripped string.

    Adds / updates:
        df.attrs['filled_columns'] = [optional columns absent from the header]
    """
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ParseError(f"Feed header is missing required columns: {missing}")

    filled = [c for c in FEED_COLUMNS if c not in df.columns]
    for col in filled:
        df[col] = ""
    # Header-less trailing columns carry no field name to map to
    extras = [c for c in df.columns if c not in FEED_COLUMNS and c and not c.startswith("Unnamed:")]
    df = df[FEED_COLUMNS + extras]

    df = df.fillna("").astype(str)
    for col in df.columns:
        df[col] = df[col].str.strip()
    df = df.reset_index(drop=True)
    df.attrs["filled_columns"] = filled
    return df


def parse_feed(text: str) -> pd.DataFrame:
    if not text.strip():
        raise ParseError("Feed is empty; expected a header row.")
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise ParseError(f"Feed text is not valid CSV: {exc}") from exc
    return normalize_rows(df)


def rows_from_values(values: List[List[str]]) -> pd.DataFrame:
    """Build the feed frame from a grid of cell values (first row is the header)."""
    if not values:
        raise ParseError("Sheet is empty; expected a header row.")
    header, *body = values
    body = [row for row in body if any(str(cell).strip() for cell in row)]
    width = len(header)
    body = [(list(row) + [""] * width)[:width] for row in body]
    return normalize_rows(pd.DataFrame(body, columns=header))


def load(endpoint: str, timeout: Optional[float] = None, session=None) -> pd.DataFrame:
    """Fetch and parse the feed at `endpoint`.

    Raises FetchError when the endpoint cannot be read and ParseError when
    its content is not a usable CSV feed.
    """
    kind = endpoint_kind(endpoint)
    if kind == "sheet":
        df = rows_from_values(_fetch_sheet_values(endpoint))
    elif kind == "http":
        timeout = timeout if timeout is not None else feed_timeout_seconds()
        df = parse_feed(_fetch_http_text(endpoint, timeout, session=session))
    else:
        df = parse_feed(_read_file_text(endpoint))

    df.attrs["diagnostics"] = {
        "row_count": int(len(df)),
        "filled_columns": df.attrs.get("filled_columns", []),
        "endpoint_kind": kind,
        "fetched_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
    }
    logger.info("Loaded %d feed rows from %s endpoint", len(df), kind)
    return df


def try_load(endpoint: Optional[str] = None, **kwargs) -> FeedResult:
    """Like `load`, but returns failures in a FeedResult instead of raising."""
    try:
        target = endpoint or resolve_endpoint()
        return FeedResult(rows=load(target, **kwargs))
    except FeedError as exc:
        return FeedResult(error=exc)
