"""Pydantic models for notes and note requests."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Note(BaseModel):
    """A single note with metadata.

    Field aliases follow the document shape of the remote data service
    (``_id``, ``createdAt``...), so remote payloads validate directly.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", description="Opaque note identifier")
    creation_time: datetime = Field(..., alias="_creationTime")
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Note body (Markdown)")
    tags: list[str] = Field(default_factory=list, description="List of tags")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @field_validator("tags", mode="before")
    @classmethod
    def _none_tags_to_empty(cls, v: list[str] | None) -> list[str]:
        return [] if v is None else v

    @property
    def display_title(self) -> str:
        """Title as shown in lists; empty titles read as 'Untitled'."""
        return self.title or "Untitled"


class NoteCreate(BaseModel):
    """Fields accepted when creating a note."""

    title: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _none_tags_to_empty(cls, v: list[str] | None) -> list[str]:
        return [] if v is None else v


class NoteUpdate(BaseModel):
    """Partial update. Only fields explicitly set are applied."""

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None

    def changes(self) -> dict:
        """Return the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)
