from __future__ import annotations
from fastapi import APIRouter, Depends

from portal.auth_deps import require_admin
from portal.deps import get_store
from portal.routes.responses import result_response
from portal.schemas.announcement import Announcement, AnnouncementCreate, AnnouncementToggle
from portal.services.announcements import AnnouncementService
from portal.store.base import DocumentStore

router = APIRouter(prefix="/announcements", tags=["announcements"])
admin_router = APIRouter(prefix="/admin/announcements", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[Announcement])
async def active_announcements(store: DocumentStore = Depends(get_store)):
    return await AnnouncementService(store).list_active()


@admin_router.get("", response_model=list[Announcement])
async def all_announcements(store: DocumentStore = Depends(get_store)):
    return await AnnouncementService(store).list_all()


@admin_router.post("")
async def create_announcement(payload: AnnouncementCreate, store: DocumentStore = Depends(get_store)):
    return result_response(await AnnouncementService(store).create(payload), success_status=201)


@admin_router.patch("/{announcement_id}")
async def toggle_announcement(announcement_id: str, payload: AnnouncementToggle, store: DocumentStore = Depends(get_store)):
    return result_response(await AnnouncementService(store).set_active(announcement_id, payload.is_active))


@admin_router.delete("/{announcement_id}")
async def delete_announcement(announcement_id: str, store: DocumentStore = Depends(get_store)):
    return result_response(await AnnouncementService(store).delete(announcement_id))
