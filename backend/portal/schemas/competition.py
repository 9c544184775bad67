from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel

from portal.competitions import Competition, CompetitionKind


class CompetitionPublic(BaseModel):
    id: str
    name: str
    description: str
    kind: CompetitionKind
    deadline: datetime | None = None
    prize: str | None = None
    single_winner_per_participant: bool = False

    @classmethod
    def of(cls, c: Competition) -> "CompetitionPublic":
        return cls(
            id=c.id, name=c.name, description=c.description, kind=c.kind,
            deadline=c.deadline, prize=c.prize,
            single_winner_per_participant=c.single_winner_per_participant,
        )


class CompetitionMeta(BaseModel):
    result_announcement_date: datetime
