from __future__ import annotations
import json
import uuid

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from minio.error import S3Error
from pydantic import ValidationError

from portal.competitions import COMPETITIONS, Competition, get_competition
from portal.config import settings
from portal.deps import get_store
from portal.errors import StoreError
from portal.repositories.submissions import SubmissionRepository
from portal.schemas.competition import CompetitionMeta, CompetitionPublic
from portal.schemas.submission import ENTRY_MODELS, Submission
from portal.services.competition_meta import get_meta
from portal.services.media import validate_image, ext_for_mime, safe_filename
from portal.services.sheets import SheetsExporter, get_sheets_exporter, mirror_submission
from portal.services.storage import FileStorage, get_file_storage
from portal.store.base import DocumentStore

router = APIRouter(prefix="/competitions", tags=["competitions"])
log = structlog.get_logger()


def _competition_or_404(competition_id: str) -> Competition:
    c = get_competition(competition_id)
    if c is None:
        raise HTTPException(status_code=404, detail="Competition not found")
    return c


@router.get("", response_model=list[CompetitionPublic])
async def list_competitions():
    return [CompetitionPublic.of(c) for c in COMPETITIONS.values()]


@router.get("/{competition_id}", response_model=CompetitionPublic)
async def get_competition_detail(competition_id: str):
    return CompetitionPublic.of(_competition_or_404(competition_id))


@router.get("/{competition_id}/meta", response_model=CompetitionMeta | None)
async def get_competition_meta(competition_id: str, store: DocumentStore = Depends(get_store)):
    _competition_or_404(competition_id)
    return await get_meta(store, competition_id)


@router.post("/{competition_id}/submissions", response_model=Submission, status_code=201)
async def submit_entry(
    competition_id: str,
    payload: str = Form(..., description="JSON object with the entry fields"),
    file: UploadFile | None = File(default=None, description="Optional screenshot / photo (JPEG or PNG)"),
    ref: str | None = Query(default=None, description="Referral tag from the landing link"),
    store: DocumentStore = Depends(get_store),
    storage: FileStorage = Depends(get_file_storage),
    exporter: SheetsExporter | None = Depends(get_sheets_exporter),
):
    competition = _competition_or_404(competition_id)

    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        raise HTTPException(status_code=422, detail="Invalid JSON in payload")
    if not isinstance(data, dict):
        raise HTTPException(status_code=422, detail="Payload must be a JSON object")
    # first-touch attribution: an explicit ref_source wins over the query tag
    if ref and not data.get("ref_source"):
        data["ref_source"] = ref

    try:
        entry = ENTRY_MODELS[competition.kind].model_validate(data)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False, include_input=False))

    file_name = file_url = key = None
    if file is not None and file.filename:
        raw = await file.read()
        try:
            mime = validate_image(raw, settings.max_upload_bytes)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid file: {e}")
        key = f"submissions/{competition.id}/{uuid.uuid4().hex}.{ext_for_mime(mime)}"
        try:
            file_url = await storage.put_bytes(key, raw, mime)
        except S3Error as e:
            log.error("upload_store_failed", key=key, code=e.code)
            raise HTTPException(status_code=502, detail="Could not store the uploaded file")
        file_name = safe_filename(file.filename)

    try:
        submission = await SubmissionRepository(store).create(
            competition, entry, file_name=file_name, file_url=file_url
        )
    except StoreError:
        if key is not None:
            log.warning("submission_store_failed_after_upload", key=key)
            await storage.remove(key)
        raise
    await mirror_submission(exporter, submission)
    return submission
