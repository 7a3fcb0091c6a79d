"""
Dependency wiring for the FastAPI app.

Long-lived clients are built once by ``build_context`` and stored on
``app.state.context``. Route handlers receive them through the providers
below, never through module globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import firebase_admin
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import credentials

from baddie_api.auth import (
    FirebaseIdentityVerifier,
    IdentityVerifier,
    RejectingIdentityVerifier,
    VerifiedIdentity,
)
from baddie_api.config import Settings
from baddie_api.db import DbClient, InMemoryDbClient, SqlDbClient
from baddie_api.errors import Unauthenticated
from baddie_api.notifications import (
    FirebaseNotificationDispatcher,
    InMemoryNotificationDispatcher,
    NotificationDispatcher,
)

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "baddie-api"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class ServiceContext:
    db: DbClient
    verifier: IdentityVerifier
    dispatcher: NotificationDispatcher

    def close(self) -> None:
        close = getattr(self.db, "close", None)
        if close:
            close()


def init_firebase_app(settings: Settings) -> firebase_admin.App:
    """Initialize (or reuse) the Firebase app for the configured service account."""
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass
    cred = credentials.Certificate(settings.firebase_service_account())
    return firebase_admin.initialize_app(
        cred,
        options={"projectId": settings.firebase_project_id},
        name=FIREBASE_APP_NAME,
    )


def build_db_client(settings: Settings) -> DbClient:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory record store")
        return InMemoryDbClient()
    logger.info("Using SQL record store")
    return SqlDbClient(settings.database_url)


def build_context(settings: Settings) -> ServiceContext:
    db = build_db_client(settings)
    if settings.use_in_memory_backends or not settings.has_firebase_credentials:
        logger.warning(
            "Firebase credentials not configured; protected routes will reject all tokens"
        )
        return ServiceContext(
            db=db,
            verifier=RejectingIdentityVerifier(),
            dispatcher=InMemoryNotificationDispatcher(),
        )
    app = init_firebase_app(settings)
    return ServiceContext(
        db=db,
        verifier=FirebaseIdentityVerifier(app),
        dispatcher=FirebaseNotificationDispatcher(app),
    )


def get_context(request: Request) -> ServiceContext:
    return request.app.state.context


def get_db_client(context: ServiceContext = Depends(get_context)) -> DbClient:
    return context.db


def get_dispatcher(
    context: ServiceContext = Depends(get_context),
) -> NotificationDispatcher:
    return context.dispatcher


def get_current_identity(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    context: ServiceContext = Depends(get_context),
) -> VerifiedIdentity:
    """
    Verify the request's bearer token. Runs before any record store access.
    """
    if bearer is None or not bearer.credentials:
        raise Unauthenticated("No token provided")
    return context.verifier.verify(bearer.credentials)
