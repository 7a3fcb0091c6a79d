"""
HTTP routes for the Daily Baddie API.

User routes act only on the user owning the verified token; no route accepts
a user id from the client.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from baddie_api.auth import VerifiedIdentity
from baddie_api.db import DbClient
from baddie_api.dependencies import get_current_identity, get_db_client, get_dispatcher
from baddie_api.notifications import NotificationDispatcher
from baddie_api.schemas import (
    ErrorResponse,
    MessageResponse,
    NotificationRequest,
    NotificationResponse,
    ProfileResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

UNAUTHENTICATED = {401: {"model": ErrorResponse, "description": "Missing or invalid token"}}
NOT_FOUND = {404: {"model": ErrorResponse, "description": "Unknown profile or user"}}
SERVER_ERROR = {500: {"model": ErrorResponse, "description": "Store or push service failure"}}


@router.get("/profiles", response_model=list[ProfileResponse], responses=SERVER_ERROR)
def list_profiles(
    category: Optional[str] = Query(None, description='Exact category, or "all"'),
    fame_level: Optional[str] = Query(None, alias="fameLevel"),
    db: DbClient = Depends(get_db_client),
):
    profiles = db.list_profiles(category=category, fame_level=fame_level)
    return [ProfileResponse.from_record(profile) for profile in profiles]


@router.get(
    "/profiles/{profile_id}",
    response_model=ProfileResponse,
    responses={**NOT_FOUND, **SERVER_ERROR},
)
def get_profile(profile_id: str, db: DbClient = Depends(get_db_client)):
    return ProfileResponse.from_record(db.get_profile(profile_id))


@router.post(
    "/users",
    response_model=UserResponse,
    responses={**UNAUTHENTICATED, **SERVER_ERROR},
)
def register_user(
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: DbClient = Depends(get_db_client),
):
    """
    Find or create the user for the verified token. Existing users are
    returned as stored; email and display name are not refreshed.
    """
    user = db.find_or_create_user(
        identity.subject_id, identity.email, identity.display_name
    )
    return UserResponse.from_record(user)


@router.post(
    "/users/favorites/{profile_id}",
    response_model=MessageResponse,
    responses={**UNAUTHENTICATED, **NOT_FOUND, **SERVER_ERROR},
)
def add_favorite(
    profile_id: str,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: DbClient = Depends(get_db_client),
):
    if db.add_favorite(identity.subject_id, profile_id):
        logger.info("User %s added favorite %s", identity.subject_id, profile_id)
    return MessageResponse(message="Added to favorites")


@router.delete(
    "/users/favorites/{profile_id}",
    response_model=MessageResponse,
    responses={**UNAUTHENTICATED, **NOT_FOUND, **SERVER_ERROR},
)
def remove_favorite(
    profile_id: str,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: DbClient = Depends(get_db_client),
):
    if db.remove_favorite(identity.subject_id, profile_id):
        logger.info("User %s removed favorite %s", identity.subject_id, profile_id)
    return MessageResponse(message="Removed from favorites")


@router.get(
    "/users/favorites",
    response_model=list[ProfileResponse],
    responses={**UNAUTHENTICATED, **NOT_FOUND, **SERVER_ERROR},
)
def list_favorites(
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: DbClient = Depends(get_db_client),
):
    profiles = db.list_favorites(identity.subject_id)
    return [ProfileResponse.from_record(profile) for profile in profiles]


@router.post(
    "/notifications/send",
    response_model=NotificationResponse,
    responses={**UNAUTHENTICATED, **SERVER_ERROR},
)
def send_notification(
    payload: Optional[NotificationRequest] = None,
    identity: VerifiedIdentity = Depends(get_current_identity),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    payload = payload or NotificationRequest()
    message_id = dispatcher.send(payload.title, payload.body, payload.token)
    return NotificationResponse(success=True, messageId=message_id)
