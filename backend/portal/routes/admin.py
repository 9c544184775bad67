from __future__ import annotations
import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from portal.auth_deps import require_admin
from portal.competitions import get_competition
from portal.config import settings
from portal.deps import get_store
from portal.repositories.submissions import SubmissionRepository
from portal.routes.responses import result_response
from portal.schemas.auth import AccessToken, LoginRequest
from portal.schemas.stats import SubmissionStats
from portal.schemas.submission import DeleteSubmissionsRequest, MarkWinnerRequest, ReferralUpdate, Submission
from portal.security import make_access_token, verify_password
from portal.services.stats import compute_stats, filter_by_competition, filter_by_referral
from portal.services.winners import correct_referral, delete_submissions, mark_winner, unmark_winner
from portal.services.xlsx_export import columns_for, export_filename, submissions_workbook
from portal.store.base import DocumentStore

log = structlog.get_logger()

auth_router = APIRouter(prefix="/admin", tags=["admin"])
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@auth_router.post("/login", response_model=AccessToken)
async def login(payload: LoginRequest):
    if payload.email.lower() != settings.admin_email.lower() or not verify_password(
        payload.password, settings.admin_password_hash
    ):
        log.warning("admin_login_failed", email=payload.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    log.info("admin_login", email=settings.admin_email)
    return AccessToken(access=make_access_token(settings.admin_email))


def _check_competition(competition_id: str | None) -> None:
    if competition_id and get_competition(competition_id) is None:
        raise HTTPException(status_code=404, detail="Competition not found")


@router.get("/submissions", response_model=list[Submission])
async def list_submissions(
    ref: str = Query(default="all", description="all | direct | <referral source>"),
    competition_id: str | None = Query(default=None),
    store: DocumentStore = Depends(get_store),
):
    _check_competition(competition_id)
    submissions = await SubmissionRepository(store).list_all()
    return filter_by_competition(filter_by_referral(submissions, ref), competition_id)


@router.get("/stats", response_model=SubmissionStats)
async def submission_stats(
    ref: str = Query(default="all", description="all | direct | <referral source>"),
    store: DocumentStore = Depends(get_store),
):
    submissions = await SubmissionRepository(store).list_all()
    return compute_stats(filter_by_referral(submissions, ref), everything=submissions)


@router.get("/submissions/export")
async def export_submissions(
    ref: str = Query(default="all"),
    competition_id: str | None = Query(default=None),
    store: DocumentStore = Depends(get_store),
):
    _check_competition(competition_id)
    submissions = await SubmissionRepository(store).list_all()
    rows = filter_by_competition(filter_by_referral(submissions, ref), competition_id)
    if not rows:
        raise HTTPException(status_code=404, detail="No data to download.")
    competition = get_competition(competition_id) if competition_id else None
    body = submissions_workbook(rows, columns_for(competition_id))
    filename = export_filename(competition.name if competition else None)
    return Response(
        content=body,
        media_type=XLSX_MIME,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/submissions/{submission_id}/winner")
async def mark_submission_winner(
    submission_id: str,
    payload: MarkWinnerRequest | None = None,
    store: DocumentStore = Depends(get_store),
):
    rank = payload.rank if payload else None
    return result_response(await mark_winner(store, submission_id, rank))


@router.delete("/submissions/{submission_id}/winner")
async def unmark_submission_winner(submission_id: str, store: DocumentStore = Depends(get_store)):
    return result_response(await unmark_winner(store, submission_id))


@router.patch("/submissions/{submission_id}/referral")
async def update_referral(submission_id: str, payload: ReferralUpdate, store: DocumentStore = Depends(get_store)):
    return result_response(await correct_referral(store, submission_id, payload.ref_source))


@router.post("/submissions/delete")
async def delete_many(payload: DeleteSubmissionsRequest, store: DocumentStore = Depends(get_store)):
    return result_response(await delete_submissions(store, payload.ids))
