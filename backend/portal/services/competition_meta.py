from __future__ import annotations
import structlog

from portal.competitions import get_competition
from portal.errors import StoreError
from portal.schemas.competition import CompetitionMeta
from portal.schemas.result import ActionResult
from portal.services.outcomes import store_failure
from portal.store.base import COMPETITION_META, DocumentStore

log = structlog.get_logger()


async def get_meta(store: DocumentStore, competition_id: str) -> CompetitionMeta | None:
    doc = await store.get(COMPETITION_META, competition_id)
    return CompetitionMeta.model_validate(doc.data) if doc else None


async def set_meta(store: DocumentStore, competition_id: str, meta: CompetitionMeta) -> ActionResult:
    if get_competition(competition_id) is None:
        return ActionResult.fail("not_found", "Unknown competition.")
    try:
        # whole-document overwrite
        await store.set(COMPETITION_META, competition_id, meta.model_dump(mode="json"))
    except StoreError as e:
        return store_failure(e, "competition_meta_update_failed", competition_id=competition_id)
    log.info("competition_meta_set", competition_id=competition_id,
             result_announcement_date=meta.result_announcement_date.isoformat())
    return ActionResult.ok("Result announcement date updated.")
