"""
Pydantic records and request/response schemas for the site service.

Rows coming back from the store are untyped dicts. They are validated here,
at the boundary, so the rest of the service only deals with typed records.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import (
    BaseModel,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
)

from corpsite.errors import StoreError


def _coerce_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coerce_text_list(value: Any) -> Optional[list[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return None


class BlogPost(BaseModel):
    id: str
    title: str
    excerpt: Optional[str] = None
    content: Optional[str] = None
    author: str
    published_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category: Optional[str] = None
    tags: Optional[list[str]] = None
    image_url: Optional[str] = None
    featured: Optional[bool] = None
    status: Optional[str] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: Optional[list[str]] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("published_at", "updated_at", mode="before")
    @classmethod
    def _timestamps(cls, value: Any) -> Optional[datetime]:
        return _coerce_timestamp(value)

    @field_validator("tags", "seo_keywords", mode="before")
    @classmethod
    def _text_lists(cls, value: Any) -> Optional[list[str]]:
        return _coerce_text_list(value)

    @field_validator("featured", mode="before")
    @classmethod
    def _featured(cls, value: Any) -> Optional[bool]:
        return value if isinstance(value, bool) else None

    @field_validator(
        "excerpt",
        "content",
        "category",
        "image_url",
        "status",
        "seo_title",
        "seo_description",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @property
    def is_featured(self) -> bool:
        return bool(self.featured)

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @classmethod
    def from_row(cls, row: dict) -> "BlogPost":
        try:
            return cls.model_validate(row)
        except ValidationError as exc:
            raise StoreError(f"Malformed blogs row: {exc}") from exc


class ContactMessage(BaseModel):
    id: str
    name: str
    email: str
    subject: str
    message: str
    status: str = "unread"
    created_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> str:
        return value if isinstance(value, str) and value else "unread"

    @field_validator("created_at", mode="before")
    @classmethod
    def _created_at(cls, value: Any) -> Any:
        # created_at is required, so an unparseable value stays invalid.
        return _coerce_timestamp(value) or value

    @property
    def is_unread(self) -> bool:
        return self.status == "unread"

    @classmethod
    def from_row(cls, row: dict) -> "ContactMessage":
        try:
            return cls.model_validate(row)
        except ValidationError as exc:
            raise StoreError(f"Malformed contact_messages row: {exc}") from exc


class BlogPostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    author: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = None
    tags: Optional[list[str]] = None
    image_url: Optional[str] = None
    featured: bool = False
    status: Literal["draft", "published"] = "draft"
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: Optional[list[str]] = None


class BlogPostUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = None
    tags: Optional[list[str]] = None
    image_url: Optional[str] = None
    featured: Optional[bool] = None
    status: Optional[Literal["draft", "published"]] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: Optional[list[str]] = None

    @field_validator("title", "author")
    @classmethod
    def _not_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("This field cannot be null")
        return value

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ContactMessageCreate(BaseModel):
    name: str = Field(..., max_length=200)
    email: EmailStr
    subject: str = Field(..., max_length=300)
    message: str = Field(..., max_length=5000)

    @field_validator("name", "subject", "message")
    @classmethod
    def _required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("This field is required")
        return value


class ContactStatusUpdate(BaseModel):
    status: Literal["read", "unread"]


class LoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignupPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    confirm_password: str = Field(..., min_length=1)


class NotificationOut(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class BlogPostResponse(BaseModel):
    post: BlogPost
    notifications: list[NotificationOut]


class ContactMessageResponse(BaseModel):
    message: ContactMessage
    notifications: list[NotificationOut]


class DeletedResponse(BaseModel):
    id: str
    notifications: list[NotificationOut]


class AuthResponse(BaseModel):
    redirect_to: Optional[str] = None
    email: Optional[str] = None
    notifications: list[NotificationOut]
