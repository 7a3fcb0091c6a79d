"""
Push notification dispatch through Firebase Cloud Messaging.

Messages are sent once, synchronously. There is no retry or queueing.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Protocol

from firebase_admin import App, exceptions, messaging

from baddie_api.errors import DispatchFailed

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    def send(
        self, title: Optional[str], body: Optional[str], target_token: Optional[str]
    ) -> str:
        """Send a notification and return the push service's message id."""
        ...


class FirebaseNotificationDispatcher:
    def __init__(self, app: Optional[App] = None):
        self.app = app

    def send(
        self, title: Optional[str], body: Optional[str], target_token: Optional[str]
    ) -> str:
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            token=target_token,
        )
        try:
            message_id = messaging.send(message, app=self.app)
        except (ValueError, exceptions.FirebaseError) as e:
            logger.error("Push notification failed: %s", e)
            raise DispatchFailed(str(e), cause=e) from e
        logger.info("Sent push notification %s", message_id)
        return message_id


@dataclass
class SentNotification:
    title: str
    body: str
    target_token: str
    message_id: str


@dataclass
class InMemoryNotificationDispatcher:
    """Records messages instead of sending them. Used for development and tests."""

    project_id: str = "local"
    sent: list[SentNotification] = field(default_factory=list)
    fail_with: Optional[str] = None

    def send(
        self, title: Optional[str], body: Optional[str], target_token: Optional[str]
    ) -> str:
        if self.fail_with:
            raise DispatchFailed(self.fail_with)
        if not target_token:
            raise DispatchFailed("Exactly one of token, topic or condition must be specified.")
        message_id = f"projects/{self.project_id}/messages/{uuid.uuid4().hex}"
        self.sent.append(
            SentNotification(
                title=title, body=body, target_token=target_token, message_id=message_id
            )
        )
        return message_id
