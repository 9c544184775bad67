from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from portal.store.base import Document


class AnnouncementCreate(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    message: str = Field(min_length=1, max_length=1000)
    link: str | None = Field(default=None, pattern=r"^https?://\S+$")
    is_active: bool = True


class AnnouncementToggle(BaseModel):
    is_active: bool


class Announcement(BaseModel):
    id: str
    title: str
    message: str
    link: str | None = None
    is_active: bool
    created_at: datetime

    @classmethod
    def from_document(cls, doc: Document) -> "Announcement":
        return cls.model_validate({**doc.data, "id": doc.id})
