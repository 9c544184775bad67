from __future__ import annotations
from datetime import date, datetime, timedelta, timezone as dt_tz
from typing import Any, Sequence

import structlog

from portal.errors import StoreError
from portal.schemas.result import ActionResult
from portal.schemas.winners import CuratedDateGroup, CuratedWinnerList, CuratedWinnerUpload, CuratedWinnersPublic
from portal.services.curated_import import DATE_COLUMN, parse_winner_date
from portal.services.outcomes import store_failure
from portal.store.base import CURATED_WINNERS, DocumentStore

log = structlog.get_logger()


class CuratedWinnerStore:
    """One document per competition holding the published Hall of Fame list."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, competition_id: str) -> CuratedWinnerList | None:
        doc = await self.store.get(CURATED_WINNERS, competition_id)
        return CuratedWinnerList.model_validate(doc.data) if doc else None

    async def replace(self, upload: CuratedWinnerUpload) -> ActionResult:
        """Full replace of the competition's list; no merge, no history."""
        try:
            previous = await self.get(upload.competition_id)
            now = datetime.now(dt_tz.utc)
            if previous is not None and now <= previous.updated_at:
                now = previous.updated_at + timedelta(microseconds=1)
            doc = CuratedWinnerList(competition_id=upload.competition_id, winners=upload.winners, updated_at=now)
            await self.store.set(CURATED_WINNERS, upload.competition_id, doc.model_dump(mode="json"))
        except StoreError as e:
            return store_failure(e, "curated_winners_save_failed", competition_id=upload.competition_id)
        log.info("curated_winners_saved", competition_id=upload.competition_id, rows=len(upload.winners))
        return ActionResult.ok(f"Published {len(upload.winners)} winner(s).")


def _date_value(row: dict[str, Any]) -> Any:
    if DATE_COLUMN in row:
        return row[DATE_COLUMN]
    for k, v in row.items():
        if k.strip().upper() == DATE_COLUMN:
            return v
    return None


def group_by_date(winners: Sequence[dict[str, Any]]) -> tuple[list[CuratedDateGroup], int]:
    """Newest date first; rows whose date cannot be read are only counted."""
    groups: dict[date, list[dict[str, Any]]] = {}
    undated = 0
    for row in winners:
        d = parse_winner_date(_date_value(row))
        if d is None:
            undated += 1
            continue
        groups.setdefault(d, []).append(row)
    ordered = [CuratedDateGroup(day=d, winners=groups[d]) for d in sorted(groups, reverse=True)]
    return ordered, undated


def to_public(competition_id: str, curated: CuratedWinnerList | None) -> CuratedWinnersPublic:
    if curated is None:
        return CuratedWinnersPublic(competition_id=competition_id)
    by_date, undated = group_by_date(curated.winners)
    return CuratedWinnersPublic(
        competition_id=competition_id,
        updated_at=curated.updated_at,
        winners=curated.winners,
        by_date=by_date,
        undated_count=undated,
    )
