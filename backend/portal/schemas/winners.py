from __future__ import annotations
from datetime import date, datetime
from typing import Any
from pydantic import BaseModel, Field

from portal.schemas.result import ActionResult
from portal.schemas.submission import Submission


class ReconcileRequest(BaseModel):
    # emptiness is reported by the engine, not rejected here
    registration_ids: list[str] = Field(default_factory=list)


class ReconcileResult(ActionResult):
    total_matches: int = 0
    total_in_file: int = 0
    unmatched_ids: list[str] = Field(default_factory=list)


class ParsedSheet(BaseModel):
    columns: list[str]
    rows: list[dict[str, Any]]


class CuratedWinnerUpload(BaseModel):
    """Already-parsed, already-validated rows handed to the write stage."""
    competition_id: str
    winners: list[dict[str, Any]]


class CuratedWinnerList(BaseModel):
    competition_id: str
    winners: list[dict[str, Any]]
    updated_at: datetime


class CuratedDateGroup(BaseModel):
    day: date
    winners: list[dict[str, Any]]


class CuratedWinnersPublic(BaseModel):
    competition_id: str
    updated_at: datetime | None = None
    winners: list[dict[str, Any]] = Field(default_factory=list)
    by_date: list[CuratedDateGroup] = Field(default_factory=list)
    undated_count: int = 0


class CompetitionWinners(BaseModel):
    competition_id: str
    competition_name: str
    winners: list[Submission]
