from __future__ import annotations
from typing import Iterable, Iterator, Sequence

import structlog

from portal.competitions import get_competition
from portal.errors import StoreError, PermissionDeniedError
from portal.repositories.submissions import SubmissionRepository
from portal.schemas.result import PERMISSION_DENIED_MESSAGE, STORE_FAILURE_MESSAGE
from portal.schemas.submission import Submission
from portal.schemas.winners import ReconcileResult
from portal.store.base import DocumentStore, MAX_IN_FILTER_SIZE, SUBMISSIONS

log = structlog.get_logger()


def clean_registration_ids(raw: Iterable[object]) -> list[str]:
    """Strip, drop blanks and collapse duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in raw:
        if value is None:
            continue
        s = str(value).strip()
        if s:
            seen.setdefault(s, None)
    return list(seen)


def chunked(items: Sequence[str], size: int) -> Iterator[list[str]]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


def _one_per_participant(matches: Iterable[Submission]) -> list[Submission]:
    # Prefer the entry that already wins, else the earliest one.
    chosen: dict[str, Submission] = {}
    for s in sorted(matches, key=lambda m: (not m.is_winner, m.submitted_at)):
        chosen.setdefault(s.registration_id or s.id, s)
    return list(chosen.values())


class WinnerReconciliationEngine:
    """
    Marks every submission of a competition whose registration id appears in an
    uploaded list as a winner.

    Lookups go out one chunk at a time (the store caps "in" filters), the matched
    ids are unioned, and the flag flip is a single atomic batch. Callers re-read
    the submission list afterwards.
    """

    def __init__(self, store: DocumentStore, chunk_size: int = MAX_IN_FILTER_SIZE):
        if not 1 <= chunk_size <= MAX_IN_FILTER_SIZE:
            raise ValueError(f"chunk_size must be between 1 and {MAX_IN_FILTER_SIZE}")
        self.store = store
        self.chunk_size = chunk_size
        self.submissions = SubmissionRepository(store)

    async def reconcile(self, competition_id: str, registration_ids: Sequence[object]) -> ReconcileResult:
        competition_id = (competition_id or "").strip()
        if not competition_id:
            return ReconcileResult.fail("validation", "A competition is required.")
        ids = clean_registration_ids(registration_ids)
        if not ids:
            return ReconcileResult.fail("validation", "No registration IDs provided.")

        try:
            matched: dict[str, Submission] = {}
            for chunk in chunked(ids, self.chunk_size):
                for s in await self.submissions.find_by_registration_ids(competition_id, chunk):
                    matched[s.id] = s

            competition = get_competition(competition_id)
            winners = list(matched.values())
            if competition and competition.single_winner_per_participant:
                winners = _one_per_participant(winners)

            matched_regs = {s.registration_id for s in winners}
            unmatched = [r for r in ids if r not in matched_regs]

            if not winners:
                log.info("reconcile_no_matches", competition_id=competition_id, supplied=len(ids))
                return ReconcileResult.fail(
                    "no_match",
                    "No matching submissions found for the provided registration IDs.",
                    total_in_file=len(ids),
                    unmatched_ids=unmatched,
                )

            batch = self.store.batch()
            for s in winners:
                batch.update(SUBMISSIONS, s.id, {"is_winner": True})
            await self.store.commit(batch)
        except PermissionDeniedError as e:
            log.warning("reconcile_permission_denied", competition_id=competition_id, error=str(e))
            return ReconcileResult.fail("permission_denied", PERMISSION_DENIED_MESSAGE, total_in_file=len(ids))
        except StoreError:
            log.exception("reconcile_failed", competition_id=competition_id)
            return ReconcileResult.fail("store_error", STORE_FAILURE_MESSAGE, total_in_file=len(ids))

        message = f"Marked {len(winners)} submission(s) as winners."
        if unmatched:
            message += f" {len(unmatched)} of {len(ids)} registration ID(s) had no matching submission."
        log.info("reconcile_done", competition_id=competition_id, matched=len(winners),
                 supplied=len(ids), unmatched=len(unmatched))
        return ReconcileResult.ok(
            message,
            total_matches=len(winners),
            total_in_file=len(ids),
            unmatched_ids=unmatched,
        )
