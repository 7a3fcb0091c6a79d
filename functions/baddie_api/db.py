"""
Record store for profiles and users: a SQLAlchemy implementation and an
in-memory one for development and tests.
"""

from __future__ import annotations

import enum
import logging
import re
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Protocol

from sqlalchemy import JSON, Column, Float, String, create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from baddie_api.errors import InvalidRecord, NotFound

logger = logging.getLogger(__name__)

# Sentinel category meaning "no category constraint".
ALL_CATEGORIES = "all"

ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


class FameLevel(str, enum.Enum):
    FAMOUS = "famous"
    HIDDEN = "hidden"


def new_id() -> str:
    return uuid.uuid4().hex


def is_valid_id(value: str) -> bool:
    return bool(value) and bool(ID_PATTERN.match(value))


def _profile_filter(
    category: Optional[str], fame_level: Optional[str]
) -> tuple[Optional[str], Optional[str]]:
    if not category or category == ALL_CATEGORIES:
        category = None
    return category, fame_level or None


class DbClient(Protocol):
    """Interface for record store access."""

    def list_profiles(
        self, category: Optional[str] = None, fame_level: Optional[str] = None
    ) -> list["ProfileRecord"]:
        ...

    def get_profile(self, profile_id: str) -> "ProfileRecord":
        ...

    def insert_profile(self, profile: "ProfileRecord") -> "ProfileRecord":
        ...

    def delete_profile(self, profile_id: str) -> bool:
        ...

    def find_or_create_user(
        self, subject_id: str, email: str, display_name: Optional[str] = None
    ) -> "UserRecord":
        ...

    def get_user_by_subject(self, subject_id: str) -> Optional["UserRecord"]:
        ...

    def add_favorite(self, subject_id: str, profile_id: str) -> bool:
        ...

    def remove_favorite(self, subject_id: str, profile_id: str) -> bool:
        ...

    def list_favorites(self, subject_id: str) -> list["ProfileRecord"]:
        ...


@dataclass
class ProfileRecord:
    name: str
    category: str
    fame_level: FameLevel
    era: Optional[str] = None
    nationality: Optional[str] = None
    title: Optional[str] = None
    short_bio: Optional[str] = None
    full_story: Optional[str] = None
    quote: Optional[str] = None
    achievements: list[str] = field(default_factory=list)
    inspiration: Optional[str] = None
    modern_relevance: Optional[str] = None
    avatar: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=lambda: time.time())

    def __post_init__(self):
        if not self.name:
            raise ValueError("Profile name is required")
        if not self.category:
            raise ValueError("Profile category is required")
        self.fame_level = FameLevel(self.fame_level)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "fameLevel": self.fame_level.value,
            "era": self.era,
            "nationality": self.nationality,
            "title": self.title,
            "shortBio": self.short_bio,
            "fullStory": self.full_story,
            "quote": self.quote,
            "achievements": list(self.achievements),
            "inspiration": self.inspiration,
            "modernRelevance": self.modern_relevance,
            "avatar": self.avatar,
            "createdAt": self.created_at,
        }


@dataclass
class UserRecord:
    subject_id: str
    email: str
    display_name: Optional[str] = None
    favorites: list[str] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=lambda: time.time())

    def __post_init__(self):
        if not self.subject_id:
            raise InvalidRecord("User validation failed: externalSubjectId is required")
        if not self.email:
            raise InvalidRecord("User validation failed: email is required")

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "externalSubjectId": self.subject_id,
            "email": self.email,
            "displayName": self.display_name,
            "favorites": list(self.favorites),
            "createdAt": self.created_at,
        }


class InMemoryDbClient:
    """Simple in-memory record store for development and tests."""

    def __init__(self):
        self.profiles: Dict[str, ProfileRecord] = {}
        # Keyed by subject id, the unique lookup key for users.
        self.users: Dict[str, UserRecord] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.profiles.clear()
        self.users.clear()

    def list_profiles(
        self, category: Optional[str] = None, fame_level: Optional[str] = None
    ) -> list[ProfileRecord]:
        category, fame_level = _profile_filter(category, fame_level)
        matches = [
            profile
            for profile in self.profiles.values()
            if (category is None or profile.category == category)
            and (fame_level is None or profile.fame_level == fame_level)
        ]
        matches.sort(key=lambda profile: profile.created_at, reverse=True)
        return [replace(p, achievements=list(p.achievements)) for p in matches]

    def get_profile(self, profile_id: str) -> ProfileRecord:
        profile = self.profiles.get(profile_id) if is_valid_id(profile_id) else None
        if profile is None:
            raise NotFound("Profile not found")
        return replace(profile, achievements=list(profile.achievements))

    def insert_profile(self, profile: ProfileRecord) -> ProfileRecord:
        self.profiles[profile.id] = profile
        return profile

    def delete_profile(self, profile_id: str) -> bool:
        return self.profiles.pop(profile_id, None) is not None

    def find_or_create_user(
        self, subject_id: str, email: str, display_name: Optional[str] = None
    ) -> UserRecord:
        user = self.users.get(subject_id)
        if user is None:
            user = UserRecord(
                subject_id=subject_id, email=email, display_name=display_name
            )
            self.users[subject_id] = user
            logger.info("Created user %s for subject %s", user.id, subject_id)
        return replace(user, favorites=list(user.favorites))

    def get_user_by_subject(self, subject_id: str) -> Optional[UserRecord]:
        user = self.users.get(subject_id)
        if user is None:
            return None
        return replace(user, favorites=list(user.favorites))

    def _require_user(self, subject_id: str) -> UserRecord:
        user = self.users.get(subject_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def add_favorite(self, subject_id: str, profile_id: str) -> bool:
        user = self._require_user(subject_id)
        if profile_id in user.favorites:
            return False
        user.favorites.append(profile_id)
        return True

    def remove_favorite(self, subject_id: str, profile_id: str) -> bool:
        user = self._require_user(subject_id)
        if profile_id not in user.favorites:
            return False
        user.favorites = [fav for fav in user.favorites if fav != profile_id]
        return True

    def list_favorites(self, subject_id: str) -> list[ProfileRecord]:
        user = self._require_user(subject_id)
        resolved = [self.profiles[fav] for fav in user.favorites if fav in self.profiles]
        return [replace(p, achievements=list(p.achievements)) for p in resolved]


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        options: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/").endswith(":"):
            # One shared connection, otherwise every thread sees an empty database.
            options["poolclass"] = StaticPool
        return options
    return {"pool_pre_ping": True, "pool_recycle": 1800}


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url, future=True, **_engine_options(database_url)
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    def _to_profile_record(self, row: "ProfileRow") -> ProfileRecord:
        return ProfileRecord(
            id=row.id,
            name=row.name,
            category=row.category,
            fame_level=FameLevel(row.fame_level),
            era=row.era,
            nationality=row.nationality,
            title=row.title,
            short_bio=row.short_bio,
            full_story=row.full_story,
            quote=row.quote,
            achievements=list(row.achievements or []),
            inspiration=row.inspiration,
            modern_relevance=row.modern_relevance,
            avatar=row.avatar,
            created_at=row.created_at,
        )

    def _to_user_record(self, row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id,
            subject_id=row.subject_id,
            email=row.email,
            display_name=row.display_name,
            favorites=list(row.favorites or []),
            created_at=row.created_at,
        )

    def list_profiles(
        self, category: Optional[str] = None, fame_level: Optional[str] = None
    ) -> list[ProfileRecord]:
        category, fame_level = _profile_filter(category, fame_level)
        stmt = select(ProfileRow)
        if category is not None:
            stmt = stmt.where(ProfileRow.category == category)
        if fame_level is not None:
            stmt = stmt.where(ProfileRow.fame_level == fame_level)
        stmt = stmt.order_by(ProfileRow.created_at.desc())
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_profile_record(row) for row in rows]

    def get_profile(self, profile_id: str) -> ProfileRecord:
        if not is_valid_id(profile_id):
            raise NotFound("Profile not found")
        with self.Session() as session:
            row = session.get(ProfileRow, profile_id)
            if not row:
                raise NotFound("Profile not found")
            return self._to_profile_record(row)

    def insert_profile(self, profile: ProfileRecord) -> ProfileRecord:
        with self.Session() as session:
            session.add(
                ProfileRow(
                    id=profile.id,
                    name=profile.name,
                    category=profile.category,
                    fame_level=profile.fame_level.value,
                    era=profile.era,
                    nationality=profile.nationality,
                    title=profile.title,
                    short_bio=profile.short_bio,
                    full_story=profile.full_story,
                    quote=profile.quote,
                    achievements=list(profile.achievements),
                    inspiration=profile.inspiration,
                    modern_relevance=profile.modern_relevance,
                    avatar=profile.avatar,
                    created_at=profile.created_at,
                )
            )
            session.commit()
        return profile

    def delete_profile(self, profile_id: str) -> bool:
        with self.Session() as session:
            row = session.get(ProfileRow, profile_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def _select_user(self, subject_id: str, for_update: bool = False):
        stmt = select(UserRow).where(UserRow.subject_id == subject_id)
        if for_update:
            stmt = stmt.with_for_update()
        return stmt

    def find_or_create_user(
        self, subject_id: str, email: str, display_name: Optional[str] = None
    ) -> UserRecord:
        with self.Session() as session:
            row = session.execute(self._select_user(subject_id)).scalar_one_or_none()
            if row:
                return self._to_user_record(row)
            record = UserRecord(
                subject_id=subject_id, email=email, display_name=display_name
            )
            session.add(
                UserRow(
                    id=record.id,
                    subject_id=record.subject_id,
                    email=record.email,
                    display_name=record.display_name,
                    favorites=[],
                    created_at=record.created_at,
                )
            )
            try:
                session.commit()
            except IntegrityError:
                # A concurrent first login for the same subject won the insert.
                session.rollback()
                row = session.execute(self._select_user(subject_id)).scalar_one()
                return self._to_user_record(row)
            logger.info("Created user %s for subject %s", record.id, subject_id)
            return record

    def get_user_by_subject(self, subject_id: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.execute(self._select_user(subject_id)).scalar_one_or_none()
            return self._to_user_record(row) if row else None

    def add_favorite(self, subject_id: str, profile_id: str) -> bool:
        with self.Session() as session:
            row = session.execute(
                self._select_user(subject_id, for_update=True)
            ).scalar_one_or_none()
            if not row:
                raise NotFound("User not found")
            favorites = list(row.favorites or [])
            if profile_id in favorites:
                return False
            # Assign a new list so the JSON column is flagged as modified.
            row.favorites = favorites + [profile_id]
            session.commit()
            return True

    def remove_favorite(self, subject_id: str, profile_id: str) -> bool:
        with self.Session() as session:
            row = session.execute(
                self._select_user(subject_id, for_update=True)
            ).scalar_one_or_none()
            if not row:
                raise NotFound("User not found")
            favorites = list(row.favorites or [])
            if profile_id not in favorites:
                return False
            row.favorites = [fav for fav in favorites if fav != profile_id]
            session.commit()
            return True

    def list_favorites(self, subject_id: str) -> list[ProfileRecord]:
        with self.Session() as session:
            row = session.execute(self._select_user(subject_id)).scalar_one_or_none()
            if not row:
                raise NotFound("User not found")
            favorites = list(row.favorites or [])
            if not favorites:
                return []
            rows = (
                session.execute(select(ProfileRow).where(ProfileRow.id.in_(favorites)))
                .scalars()
                .all()
            )
            by_id = {profile.id: profile for profile in rows}
            return [
                self._to_profile_record(by_id[fav]) for fav in favorites if fav in by_id
            ]


Base = declarative_base()


class ProfileRow(Base):
    __tablename__ = "profiles"

    id = Column(String(32), primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    fame_level = Column(String, nullable=False, index=True)
    era = Column(String, nullable=True)
    nationality = Column(String, nullable=True)
    title = Column(String, nullable=True)
    short_bio = Column(String, nullable=True)
    full_story = Column(String, nullable=True)
    quote = Column(String, nullable=True)
    achievements = Column(JSON, nullable=False, default=list)
    inspiration = Column(String, nullable=True)
    modern_relevance = Column(String, nullable=True)
    avatar = Column(String, nullable=True)
    created_at = Column(Float, nullable=False, index=True)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    subject_id = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    favorites = Column(JSON, nullable=False, default=list)
    created_at = Column(Float, nullable=False)
