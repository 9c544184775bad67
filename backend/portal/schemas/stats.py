from __future__ import annotations
from pydantic import BaseModel


class CompetitionCount(BaseModel):
    id: str
    name: str
    count: int


class ReferralCount(BaseModel):
    ref_source: str  # "Direct" for entries without a source
    count: int


class SubmissionStats(BaseModel):
    total_submissions: int
    per_competition: list[CompetitionCount]
    referrals: list[ReferralCount] = []
