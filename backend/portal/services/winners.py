from __future__ import annotations
from typing import Sequence

import structlog

from portal.competitions import COMPETITIONS, get_competition
from portal.errors import StoreError
from portal.repositories.submissions import SubmissionRepository
from portal.schemas.result import ActionResult
from portal.schemas.submission import Submission
from portal.schemas.winners import CompetitionWinners
from portal.services.outcomes import store_failure
from portal.store.base import DocumentStore

log = structlog.get_logger()


async def mark_winner(store: DocumentStore, submission_id: str, rank: int | None = None) -> ActionResult:
    repo = SubmissionRepository(store)
    try:
        s = await repo.get(submission_id)
        if s is None:
            return ActionResult.fail("not_found", "Submission not found.")
        competition = get_competition(s.competition_id)
        if competition and competition.single_winner_per_participant and s.registration_id:
            others = [w for w in await repo.winners_for_registration(s.competition_id, s.registration_id)
                      if w.id != s.id]
            if others:
                return ActionResult.fail(
                    "validation",
                    f"Registration ID {s.registration_id} already has a winning entry in {s.competition_name}.",
                )
        await repo.set_winner(s.id, True, rank)
    except StoreError as e:
        return store_failure(e, "mark_winner_failed", submission_id=submission_id)
    log.info("winner_marked", submission_id=submission_id, competition_id=s.competition_id, rank=rank)
    return ActionResult.ok("Submission marked as winner.")


async def unmark_winner(store: DocumentStore, submission_id: str) -> ActionResult:
    repo = SubmissionRepository(store)
    try:
        if await repo.get(submission_id) is None:
            return ActionResult.fail("not_found", "Submission not found.")
        await repo.set_winner(submission_id, False, None)
    except StoreError as e:
        return store_failure(e, "unmark_winner_failed", submission_id=submission_id)
    log.info("winner_unmarked", submission_id=submission_id)
    return ActionResult.ok("Winner status removed.")


async def correct_referral(store: DocumentStore, submission_id: str, ref_source: str | None) -> ActionResult:
    ref_source = (ref_source or "").strip() or None
    repo = SubmissionRepository(store)
    try:
        if await repo.get(submission_id) is None:
            return ActionResult.fail("not_found", "Submission not found.")
        await repo.set_referral(submission_id, ref_source)
    except StoreError as e:
        return store_failure(e, "referral_update_failed", submission_id=submission_id)
    log.info("referral_corrected", submission_id=submission_id, ref_source=ref_source or "direct")
    return ActionResult.ok("Referral source updated." if ref_source else "Submission marked as direct.")


async def delete_submissions(store: DocumentStore, submission_ids: Sequence[str]) -> ActionResult:
    ids = [i.strip() for i in submission_ids if i and i.strip()]
    if not ids:
        return ActionResult.fail("validation", "No submissions selected.")
    try:
        deleted = await SubmissionRepository(store).delete_many(ids)
    except StoreError as e:
        return store_failure(e, "submissions_delete_failed", count=len(ids))
    log.info("submissions_deleted", count=deleted, requested=len(ids))
    if not deleted:
        return ActionResult.fail("not_found", "None of the selected submissions exist.")
    return ActionResult.ok(f"Deleted {deleted} submission(s).")


def group_winners(winners: Sequence[Submission]) -> list[CompetitionWinners]:
    """Winners per competition, in registry order, newest entries first."""
    by_comp: dict[str, list[Submission]] = {}
    for w in sorted(winners, key=lambda s: s.submitted_at, reverse=True):
        by_comp.setdefault(w.competition_id, []).append(w)
    order = [cid for cid in COMPETITIONS if cid in by_comp] + [cid for cid in by_comp if cid not in COMPETITIONS]
    return [
        CompetitionWinners(
            competition_id=cid,
            competition_name=by_comp[cid][0].competition_name,
            winners=by_comp[cid],
        )
        for cid in order
    ]
