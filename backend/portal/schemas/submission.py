from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from portal.store.base import Document

Rank = Literal[1, 2, 3]

_URL_PATTERN = r"^https?://\S+$"


class EntryBase(BaseModel):
    """Fields every competition form may carry."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str | None = Field(default=None, min_length=2, max_length=50)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, min_length=10, max_length=20)
    university: str | None = Field(default=None, min_length=3, max_length=120)
    ref_source: str | None = Field(default=None, max_length=64)

    @field_validator("name", "email", "phone", "university", "ref_source", mode="before")
    @classmethod
    def blank_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class FollowWinEntry(EntryBase):
    registration_id: str = Field(min_length=5, max_length=32, description="Registration / candidate ID")
    instagram_handle: str = Field(min_length=3, max_length=200)
    school: str = Field(min_length=1, max_length=200)
    school_link: str | None = Field(default=None, pattern=_URL_PATTERN)


class PostEntry(EntryBase):
    registration_id: str = Field(min_length=5, max_length=32, description="Registration / candidate ID")
    post_link: str = Field(pattern=_URL_PATTERN, max_length=500, description="Instagram reel/post link")
    reddit_post_link: str | None = Field(default=None, pattern=_URL_PATTERN, max_length=500)

    @field_validator("reddit_post_link", mode="before")
    @classmethod
    def blank_link(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


ENTRY_MODELS: dict[str, type[EntryBase]] = {
    "follow": FollowWinEntry,
    "post": PostEntry,
}


class Submission(BaseModel):
    id: str
    competition_id: str
    competition_name: str
    submitted_at: datetime
    is_winner: bool = False
    rank: Rank | None = None

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    university: str | None = None

    registration_id: str | None = None
    instagram_handle: str | None = None
    school: str | None = None
    school_link: str | None = None

    post_link: str | None = None
    reddit_post_link: str | None = None

    file_name: str | None = None
    file_url: str | None = None

    ref_source: str | None = None

    @classmethod
    def from_document(cls, doc: Document) -> "Submission":
        return cls.model_validate({**doc.data, "id": doc.id})

    def to_document(self) -> dict:
        return self.model_dump(mode="json", exclude={"id"}, exclude_none=True)


class MarkWinnerRequest(BaseModel):
    rank: Rank | None = None


class ReferralUpdate(BaseModel):
    ref_source: str | None = Field(default=None, max_length=64, description="empty or null marks the entry as direct")


class DeleteSubmissionsRequest(BaseModel):
    ids: list[str] = Field(min_length=1)
