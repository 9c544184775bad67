"""
Parse-only stage for admin spreadsheet uploads.

Nothing here touches the document store: uploads are turned into plain,
JSON-serializable rows and handed back to the caller, which decides what to
persist (see portal.services.curated_store and portal.services.reconcile).
"""
from __future__ import annotations
import csv
import io
import re
import zipfile
from datetime import date, datetime, time, timezone as dt_tz
from typing import Any, Iterable

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from portal.competitions import get_competition
from portal.errors import UploadValidationError
from portal.schemas.winners import CuratedWinnerUpload, ParsedSheet

DATE_COLUMN = "DATE"
STRICT_DATE_FORMAT = "%d/%m/%Y"
PERMISSIVE_DATE_FORMATS = (
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d/%m/%y",
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d-%b-%Y",
)

_XLSX_MAGIC = b"PK\x03\x04"
_REG_HEADERS = {
    "regno", "registrationno", "registrationid", "registrationnumber",
    "regid", "regnumber", "registration", "candidateid",
}


def _is_xlsx(data: bytes, filename: str | None) -> bool:
    if data.startswith(_XLSX_MAGIC):
        return True
    return bool(filename) and filename.lower().endswith((".xlsx", ".xlsm"))


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.strftime(STRICT_DATE_FORMAT)
        return value.strftime("%d/%m/%Y %H:%M:%S")
    if isinstance(value, date):
        return value.strftime(STRICT_DATE_FORMAT)
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, (int, float, dict, list)):
        return value
    return str(value).strip()


def _xlsx_rows(data: bytes) -> list[tuple]:
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        raise UploadValidationError(f"Could not read spreadsheet: {e}") from e
    try:
        ws = wb.active
        if ws is None:
            raise UploadValidationError("Spreadsheet has no worksheet")
        return [tuple(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def _csv_rows(data: bytes) -> list[tuple]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = data.decode("latin-1")
    try:
        return [tuple(r) for r in csv.reader(io.StringIO(text))]
    except csv.Error as e:
        raise UploadValidationError(f"Could not read CSV: {e}") from e


def _header(raw: Iterable[Any]) -> list[str]:
    cols: list[str] = []
    for i, v in enumerate(raw):
        name = str(v).strip() if v is not None else ""
        name = name or f"column_{i + 1}"
        base, n = name, 2
        while name in cols:
            name = f"{base}_{n}"
            n += 1
        cols.append(name)
    return cols


def parse_winner_sheet(data: bytes, filename: str | None = None) -> ParsedSheet:
    """
    XLSX or CSV bytes -> header + rows of {column: value}.
    The first non-blank row is the header; blank rows are skipped.
    """
    if not data:
        raise UploadValidationError("Uploaded file is empty")
    raw_rows = _xlsx_rows(data) if _is_xlsx(data, filename) else _csv_rows(data)

    rows_iter = iter(raw_rows)
    columns: list[str] | None = None
    for raw in rows_iter:
        if any(_cell(v) != "" for v in raw):
            columns = _header(raw)
            break
    if columns is None:
        raise UploadValidationError("Spreadsheet has no data")

    rows: list[dict[str, Any]] = []
    for raw in rows_iter:
        values = [_cell(v) for v in raw]
        if all(v == "" for v in values):
            continue
        values += [""] * (len(columns) - len(values))
        rows.append(dict(zip(columns, values)))
    return ParsedSheet(columns=columns, rows=rows)


def _norm_header(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def _looks_like_id(value: str) -> bool:
    return bool(re.fullmatch(r"[A-Za-z]*\d{4,}[A-Za-z0-9]*", value))


def extract_registration_ids(sheet: ParsedSheet) -> list[str]:
    """
    Registration ids from the matching column (REG NO, Registration ID, ...),
    else the first column. A header-less single list keeps its first value.
    """
    if not sheet.columns:
        return []
    column = next((c for c in sheet.columns if _norm_header(c) in _REG_HEADERS), None)
    ids: list[str] = []
    if column is None:
        column = sheet.columns[0]
        if _looks_like_id(column):
            ids.append(column)
    for row in sheet.rows:
        v = row.get(column, "")
        if v != "" and v is not None:
            ids.append(str(v).strip())
    return ids


def validate_curated_upload(competition_id: str, data: Any) -> CuratedWinnerUpload:
    """Reject malformed curated-winner payloads before any write happens."""
    competition_id = (competition_id or "").strip()
    if not competition_id:
        raise UploadValidationError("A competition is required")
    if get_competition(competition_id) is None:
        raise UploadValidationError(f"Unknown competition: {competition_id}")
    if not isinstance(data, list):
        raise UploadValidationError("Winner data must be a list of rows")
    if not data:
        raise UploadValidationError("Winner data is empty")
    rows: list[dict[str, Any]] = []
    for i, row in enumerate(data):
        if not isinstance(row, dict):
            raise UploadValidationError(f"Row {i + 1} is not a mapping")
        if not all(isinstance(k, str) for k in row):
            raise UploadValidationError(f"Row {i + 1} has a non-text column name")
        # values were normalised by the parse step; stored exactly as reviewed
        rows.append(dict(row))
    return CuratedWinnerUpload(competition_id=competition_id, winners=rows)


def parse_winner_date(value: Any) -> date | None:
    """
    Best-effort date for a curated winner row. Tries DD/MM/YYYY first, then
    native dates, store timestamps and a list of looser formats. Returns None
    rather than raising.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            try:
                return datetime.fromtimestamp(seconds, tz=dt_tz.utc).date()
            except (OverflowError, OSError, ValueError):
                return None
        return None
    if not isinstance(value, str):
        return None
    s = value.strip()
    try:
        return datetime.strptime(s, STRICT_DATE_FORMAT).date()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in PERMISSIVE_DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None
