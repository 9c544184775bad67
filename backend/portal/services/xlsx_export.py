from __future__ import annotations
import io
from datetime import datetime
from typing import Sequence

from openpyxl import Workbook

from portal.competitions import FOLLOW_WIN, REEL_IT_FEEL_IT, MY_FIRST_DAY
from portal.schemas.submission import Submission

ALL_COLUMNS = (
    "competition_name", "submitted_at", "name", "email", "phone", "university",
    "registration_id", "instagram_handle", "school", "post_link", "reddit_post_link",
    "file_name", "file_url", "is_winner", "rank", "ref_source",
)

_POST_COLUMNS = (
    "competition_name", "submitted_at", "registration_id", "post_link", "reddit_post_link",
    "is_winner", "rank", "ref_source",
)

COMPETITION_COLUMNS: dict[str, tuple[str, ...]] = {
    FOLLOW_WIN: (
        "competition_name", "submitted_at", "registration_id", "instagram_handle", "school",
        "is_winner", "ref_source",
    ),
    REEL_IT_FEEL_IT: _POST_COLUMNS,
    MY_FIRST_DAY: _POST_COLUMNS,
}


def columns_for(competition_id: str | None) -> tuple[str, ...]:
    if competition_id is None:
        return ALL_COLUMNS
    return COMPETITION_COLUMNS.get(competition_id, ALL_COLUMNS)


def _value(s: Submission, column: str):
    v = getattr(s, column, None)
    if v is None:
        return ""
    if isinstance(v, datetime):
        return v.strftime("%Y-%m-%d %H:%M:%S")
    return v


def submissions_workbook(submissions: Sequence[Submission], columns: Sequence[str] = ALL_COLUMNS) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Submissions"
    ws.append(list(columns))
    for s in submissions:
        ws.append([_value(s, c) for c in columns])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_filename(competition_name: str | None) -> str:
    if not competition_name:
        return "all_submissions.xlsx"
    return "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in competition_name) + ".xlsx"
