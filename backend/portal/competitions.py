from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

CompetitionKind = Literal["follow", "post"]


@dataclass(frozen=True)
class Competition:
    id: str
    name: str
    description: str
    kind: CompetitionKind
    deadline: datetime | None = None
    prize: str | None = None
    # daily draws: a participant can hold at most one winning entry
    single_winner_per_participant: bool = False


FOLLOW_WIN = "follow-win"
REEL_IT_FEEL_IT = "reel-it-feel-it"
MY_FIRST_DAY = "my-first-day"

COMPETITIONS: dict[str, Competition] = {
    FOLLOW_WIN: Competition(
        id=FOLLOW_WIN,
        name="Follow & Win (Daily winner)",
        description="Follow your school's social media and submit a screenshot to win daily prizes.",
        kind="follow",
        single_winner_per_participant=True,
    ),
    REEL_IT_FEEL_IT: Competition(
        id=REEL_IT_FEEL_IT,
        name="Reel It. Feel It.",
        description="Create an Instagram Reel about your first days at LPU.",
        kind="post",
    ),
    MY_FIRST_DAY: Competition(
        id=MY_FIRST_DAY,
        name="My First Day at LPU",
        description=(
            "Take a selfie at LPU's official Selfie Point, post it on Instagram using the "
            "designated hashtag, and tag the official LPU page."
        ),
        kind="post",
        deadline=datetime(2025, 9, 20, 23, 59, 59, tzinfo=timezone.utc),
        prize="Participation Gift: For posts with 50+ likes (Worth Rs. 100)",
    ),
}

COMPETITION_IDS: tuple[str, ...] = tuple(COMPETITIONS)


def get_competition(competition_id: str) -> Competition | None:
    return COMPETITIONS.get(competition_id)
