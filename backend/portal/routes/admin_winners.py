from __future__ import annotations
from typing import Any

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile

from portal.auth_deps import require_admin
from portal.competitions import get_competition
from portal.config import settings
from portal.deps import get_store
from portal.errors import UploadValidationError
from portal.routes.responses import result_response
from portal.schemas.competition import CompetitionMeta
from portal.schemas.result import ActionResult
from portal.schemas.winners import ParsedSheet, ReconcileRequest, ReconcileResult
from portal.services.competition_meta import set_meta
from portal.services.curated_import import extract_registration_ids, parse_winner_sheet, validate_curated_upload
from portal.services.curated_store import CuratedWinnerStore
from portal.services.reconcile import WinnerReconciliationEngine
from portal.store.base import DocumentStore

router = APIRouter(prefix="/admin/competitions", tags=["admin"], dependencies=[Depends(require_admin)])


def _competition_or_404(competition_id: str) -> None:
    if get_competition(competition_id) is None:
        raise HTTPException(status_code=404, detail="Competition not found")


async def _read_sheet(file: UploadFile) -> ParsedSheet:
    data = await file.read()
    try:
        return parse_winner_sheet(data, file.filename)
    except UploadValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{competition_id}/winners/reconcile")
async def reconcile_winners(competition_id: str, payload: ReconcileRequest, store: DocumentStore = Depends(get_store)):
    _competition_or_404(competition_id)
    engine = WinnerReconciliationEngine(store, settings.reconcile_chunk_size)
    return result_response(await engine.reconcile(competition_id, payload.registration_ids))


@router.post("/{competition_id}/winners/reconcile-file")
async def reconcile_winners_from_file(
    competition_id: str,
    file: UploadFile = File(..., description="XLSX/CSV with a registration number column"),
    store: DocumentStore = Depends(get_store),
):
    _competition_or_404(competition_id)
    sheet = await _read_sheet(file)
    ids = extract_registration_ids(sheet)
    if not ids:
        return result_response(ReconcileResult.fail("validation", "No registration IDs found in the file."))
    engine = WinnerReconciliationEngine(store, settings.reconcile_chunk_size)
    return result_response(await engine.reconcile(competition_id, ids))


@router.put("/{competition_id}/meta")
async def update_meta(competition_id: str, payload: CompetitionMeta, store: DocumentStore = Depends(get_store)):
    _competition_or_404(competition_id)
    return result_response(await set_meta(store, competition_id, payload))


@router.post("/{competition_id}/curated-winners/parse", response_model=ParsedSheet)
async def parse_curated_winners(competition_id: str, file: UploadFile = File(...)):
    """Parse only: returns the rows for review, writes nothing."""
    _competition_or_404(competition_id)
    return await _read_sheet(file)


@router.put("/{competition_id}/curated-winners")
async def publish_curated_winners(
    competition_id: str,
    payload: Any = Body(..., description='{"winners": [...]} as returned by the parse step'),
    store: DocumentStore = Depends(get_store),
):
    _competition_or_404(competition_id)
    data = payload.get("winners") if isinstance(payload, dict) else payload
    try:
        upload = validate_curated_upload(competition_id, data)
    except UploadValidationError as e:
        return result_response(ActionResult.fail("validation", str(e)))
    return result_response(await CuratedWinnerStore(store).replace(upload))
