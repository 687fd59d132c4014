"""
Firebase adapters: Firestore user lookups and FCM push delivery.

These are the production collaborators. The app is initialised once per
process with a service-account file when one is configured, otherwise with
application default credentials (Cloud Run, Cloud Functions).
"""

import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore, messaging
from firebase_admin.exceptions import FirebaseError
from google.api_core import exceptions as google_exceptions
from pydantic import ValidationError

from marketplace.channels import PushResult, token_prefix
from marketplace.exceptions import PushDeliveryError, UserLookupError
from marketplace.models import NotificationPayload, User
from marketplace.settings import Settings, get_settings

logger = logging.getLogger("firebase")


def initialize_firebase(settings: Optional[Settings] = None) -> firebase_admin.App:
    """Return the default Firebase app, initialising it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    settings = settings or get_settings()
    if settings.firebase_credentials:
        cred = credentials.Certificate(str(settings.firebase_credentials))
        logger.info(f"Initialising Firebase with {settings.firebase_credentials}")
        return firebase_admin.initialize_app(cred)

    logger.info("Initialising Firebase with application default credentials")
    return firebase_admin.initialize_app()


class FirestoreUserStore:
    """User lookups against the Firestore `users` collection."""

    def __init__(self, client=None, collection: Optional[str] = None):
        settings = get_settings()
        if client is None:
            client = firestore.client(initialize_firebase(settings))
        self.client = client
        self.collection = collection or settings.users_collection

    def get_user(self, user_id: str) -> Optional[User]:
        """
        Read `users/{user_id}`.

        Returns None for a missing document.

        Raises:
            UserLookupError: when Firestore cannot be reached or the document is malformed
        """
        try:
            snapshot = self.client.collection(self.collection).document(user_id).get()
        except (google_exceptions.GoogleAPIError, ValueError) as e:
            # ValueError: the id is not a valid document path (e.g. contains "/")
            raise UserLookupError(user_id, str(e)) from e

        if not snapshot.exists:
            return None

        data = snapshot.to_dict() or {}
        data.setdefault("userId", user_id)
        try:
            return User.model_validate(data)
        except ValidationError as e:
            raise UserLookupError(user_id, f"unreadable user document: {e}") from e


class FCMPushChannel:
    """Push delivery through Firebase Cloud Messaging."""

    def __init__(self, app: Optional[firebase_admin.App] = None, dry_run: bool = False):
        self.app = app or initialize_firebase()
        self.dry_run = dry_run

    @staticmethod
    def build_message(payload: NotificationPayload) -> messaging.Message:
        message = payload.to_message()
        return messaging.Message(
            notification=messaging.Notification(**message["notification"]),
            data=message["data"],
            token=message["token"],
        )

    def send(self, payload: NotificationPayload) -> PushResult:
        """
        Send one message.

        Raises:
            PushDeliveryError: when FCM rejects the message or cannot be reached
        """
        message = self.build_message(payload)
        try:
            message_id = messaging.send(message, dry_run=self.dry_run, app=self.app)
        except (FirebaseError, ValueError) as e:
            logger.error(f"[FCM FAILED] token={token_prefix(payload.token)} | Error: {e}")
            raise PushDeliveryError(payload.token, str(e)) from e

        logger.info(f"[FCM] token={token_prefix(payload.token)} | {payload.title} | id={message_id}")
        return PushResult(
            success=True,
            token=payload.token,
            title=payload.title,
            body=payload.body,
            data=dict(payload.data),
            message_id=message_id,
        )
