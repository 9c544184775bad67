from __future__ import annotations
from datetime import datetime, timezone as dt_tz

import structlog

from portal.errors import StoreError, IndexMissingError
from portal.schemas.announcement import Announcement, AnnouncementCreate
from portal.schemas.result import ActionResult
from portal.services.outcomes import store_failure
from portal.store.base import ANNOUNCEMENTS, DocumentStore, OrderBy, eq

log = structlog.get_logger()

_NEWEST_FIRST = OrderBy("created_at", descending=True)


class AnnouncementService:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def list_active(self) -> list[Announcement]:
        """Public banner feed. Never falls back to an unfiltered query."""
        try:
            docs = await self.store.query(ANNOUNCEMENTS, [eq("is_active", True)], order_by=_NEWEST_FIRST)
        except IndexMissingError as e:
            log.error("announcements_index_missing", error=str(e))
            return []
        except StoreError as e:
            log.error("announcements_fetch_failed", error=str(e))
            return []
        return [Announcement.from_document(d) for d in docs]

    async def list_all(self) -> list[Announcement]:
        docs = await self.store.query(ANNOUNCEMENTS, order_by=_NEWEST_FIRST)
        return [Announcement.from_document(d) for d in docs]

    async def create(self, payload: AnnouncementCreate) -> ActionResult:
        data = payload.model_dump(exclude_none=True)
        data["created_at"] = datetime.now(dt_tz.utc).isoformat()
        try:
            doc_id = await self.store.add(ANNOUNCEMENTS, data)
        except StoreError as e:
            return store_failure(e, "announcement_create_failed")
        log.info("announcement_created", announcement_id=doc_id, is_active=payload.is_active)
        return ActionResult.ok("Announcement created successfully.")

    async def set_active(self, announcement_id: str, is_active: bool) -> ActionResult:
        try:
            await self.store.update(ANNOUNCEMENTS, announcement_id, {"is_active": is_active})
        except StoreError as e:
            return store_failure(e, "announcement_update_failed", announcement_id=announcement_id)
        log.info("announcement_toggled", announcement_id=announcement_id, is_active=is_active)
        return ActionResult.ok("Announcement status updated.")

    async def delete(self, announcement_id: str) -> ActionResult:
        try:
            await self.store.delete(ANNOUNCEMENTS, announcement_id)
        except StoreError as e:
            return store_failure(e, "announcement_delete_failed", announcement_id=announcement_id)
        log.info("announcement_deleted", announcement_id=announcement_id)
        return ActionResult.ok("Announcement deleted successfully.")
