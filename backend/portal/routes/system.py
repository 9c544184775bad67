from __future__ import annotations
from datetime import datetime, timezone
from fastapi import APIRouter, Request
from portal.competitions import COMPETITION_IDS
from portal.config import settings

router = APIRouter(tags=["system"])

@router.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "request_id": request.headers.get("x-request-id") or request.state.request_id,
        "competitions": list(COMPETITION_IDS),
        # submissions still succeed without it, they just are not mirrored
        "sheet_mirror_configured": bool(settings.google_sheets_credentials and settings.google_sheet_id),
    }

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "display_name": settings.app_display_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
        "reconcile_chunk_size": settings.reconcile_chunk_size,
    }
