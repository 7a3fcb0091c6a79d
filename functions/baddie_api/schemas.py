"""
Pydantic schemas for the Daily Baddie API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from baddie_api.db import FameLevel, ProfileRecord, UserRecord


class ProfileCreate(BaseModel):
    """Catalog entry as loaded by the seeding script."""

    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    fameLevel: FameLevel
    era: Optional[str] = None
    nationality: Optional[str] = None
    title: Optional[str] = None
    shortBio: Optional[str] = None
    fullStory: Optional[str] = None
    quote: Optional[str] = None
    achievements: list[str] = Field(default_factory=list)
    inspiration: Optional[str] = None
    modernRelevance: Optional[str] = None
    avatar: Optional[str] = None

    def to_record(self) -> ProfileRecord:
        return ProfileRecord(
            name=self.name,
            category=self.category,
            fame_level=self.fameLevel,
            era=self.era,
            nationality=self.nationality,
            title=self.title,
            short_bio=self.shortBio,
            full_story=self.fullStory,
            quote=self.quote,
            achievements=list(self.achievements),
            inspiration=self.inspiration,
            modern_relevance=self.modernRelevance,
            avatar=self.avatar,
        )


class ProfileResponse(BaseModel):
    id: str
    name: str
    category: str
    fameLevel: FameLevel
    era: Optional[str] = None
    nationality: Optional[str] = None
    title: Optional[str] = None
    shortBio: Optional[str] = None
    fullStory: Optional[str] = None
    quote: Optional[str] = None
    achievements: list[str] = Field(default_factory=list)
    inspiration: Optional[str] = None
    modernRelevance: Optional[str] = None
    avatar: Optional[str] = None
    createdAt: datetime

    @classmethod
    def from_record(cls, record: ProfileRecord) -> "ProfileResponse":
        return cls(**record.as_dict())


class UserResponse(BaseModel):
    id: str
    externalSubjectId: str
    email: str
    displayName: Optional[str] = None
    favorites: list[str]
    createdAt: datetime

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls(**record.as_dict())


class MessageResponse(BaseModel):
    message: str


class NotificationRequest(BaseModel):
    """Forwarded as received; the push service decides what it accepts."""

    title: Optional[str] = None
    body: Optional[str] = None
    token: Optional[str] = Field(None, description="Target device registration token")


class NotificationResponse(BaseModel):
    success: bool
    messageId: str


class ErrorResponse(BaseModel):
    error: str
