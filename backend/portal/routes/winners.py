from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException

from portal.competitions import get_competition
from portal.deps import get_store
from portal.repositories.submissions import SubmissionRepository
from portal.schemas.winners import CompetitionWinners, CuratedWinnersPublic
from portal.services.curated_store import CuratedWinnerStore, to_public
from portal.services.winners import group_winners
from portal.store.base import DocumentStore

router = APIRouter(prefix="/winners", tags=["winners"])


@router.get("", response_model=list[CompetitionWinners])
async def list_winners(store: DocumentStore = Depends(get_store)):
    """Hall of Fame built from submissions flagged as winners."""
    winners = await SubmissionRepository(store).list_winners()
    return group_winners(winners)


@router.get("/{competition_id}/curated", response_model=CuratedWinnersPublic)
async def curated_winners(competition_id: str, store: DocumentStore = Depends(get_store)):
    if get_competition(competition_id) is None:
        raise HTTPException(status_code=404, detail="Competition not found")
    curated = await CuratedWinnerStore(store).get(competition_id)
    return to_public(competition_id, curated)
