from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from typing import Sequence

import structlog

from portal.competitions import Competition
from portal.schemas.submission import EntryBase, Submission
from portal.store.base import DocumentStore, OrderBy, SUBMISSIONS, eq, in_

log = structlog.get_logger()

_NEWEST_FIRST = OrderBy("submitted_at", descending=True)


class SubmissionRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def create(
        self,
        competition: Competition,
        entry: EntryBase,
        *,
        file_name: str | None = None,
        file_url: str | None = None,
        submitted_at: datetime | None = None,
    ) -> Submission:
        fields = entry.model_dump(exclude_none=True)
        s = Submission(
            id="",  # assigned by the store
            competition_id=competition.id,
            competition_name=competition.name,
            submitted_at=submitted_at or datetime.now(dt_tz.utc),
            file_name=file_name,
            file_url=file_url,
            **fields,
        )
        doc_id = await self.store.add(SUBMISSIONS, s.to_document())
        s = s.model_copy(update={"id": doc_id})
        log.info("submission_created", submission_id=doc_id, competition_id=competition.id,
                 ref_source=s.ref_source or "direct")
        return s

    async def get(self, submission_id: str) -> Submission | None:
        doc = await self.store.get(SUBMISSIONS, submission_id)
        return Submission.from_document(doc) if doc else None

    async def list_all(self) -> list[Submission]:
        docs = await self.store.query(SUBMISSIONS, order_by=_NEWEST_FIRST)
        return [Submission.from_document(d) for d in docs]

    async def list_for_competition(self, competition_id: str) -> list[Submission]:
        docs = await self.store.query(SUBMISSIONS, [eq("competition_id", competition_id)], order_by=_NEWEST_FIRST)
        return [Submission.from_document(d) for d in docs]

    async def list_winners(self) -> list[Submission]:
        docs = await self.store.query(SUBMISSIONS, [eq("is_winner", True)], order_by=_NEWEST_FIRST)
        return [Submission.from_document(d) for d in docs]

    async def find_by_registration_ids(self, competition_id: str, registration_ids: Sequence[str]) -> list[Submission]:
        """One membership query; the caller keeps `registration_ids` within the store's "in" limit."""
        docs = await self.store.query(
            SUBMISSIONS,
            [eq("competition_id", competition_id), in_("registration_id", registration_ids)],
        )
        return [Submission.from_document(d) for d in docs]

    async def winners_for_registration(self, competition_id: str, registration_id: str) -> list[Submission]:
        docs = await self.store.query(
            SUBMISSIONS,
            [eq("competition_id", competition_id), eq("registration_id", registration_id), eq("is_winner", True)],
        )
        return [Submission.from_document(d) for d in docs]

    async def set_winner(self, submission_id: str, is_winner: bool, rank: int | None = None) -> None:
        await self.store.update(SUBMISSIONS, submission_id, {"is_winner": is_winner, "rank": rank})

    async def set_referral(self, submission_id: str, ref_source: str | None) -> None:
        await self.store.update(SUBMISSIONS, submission_id, {"ref_source": ref_source or None})

    async def delete_many(self, submission_ids: Sequence[str]) -> int:
        """Deletes the ids that exist in one batch; returns how many were removed."""
        batch = self.store.batch()
        for sid in dict.fromkeys(submission_ids):
            if await self.store.get(SUBMISSIONS, sid) is not None:
                batch.delete(SUBMISSIONS, sid)
        if batch.ops:
            await self.store.commit(batch)
        return len(batch)
