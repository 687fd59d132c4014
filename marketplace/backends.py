"""Select the user store and push channel implementations from settings."""

from typing import Optional

from marketplace.channels import MockPushChannel, PushChannel
from marketplace.data_store import DataStore, UserStore
from marketplace.firebase import FCMPushChannel, FirestoreUserStore
from marketplace.settings import Settings, get_settings


def build_user_store(settings: Optional[Settings] = None) -> UserStore:
    settings = settings or get_settings()
    if settings.user_backend == "firestore":
        return FirestoreUserStore(collection=settings.users_collection)
    return DataStore(data_dir=settings.data_dir)


def build_push_channel(settings: Optional[Settings] = None) -> PushChannel:
    settings = settings or get_settings()
    if settings.push_backend == "fcm":
        return FCMPushChannel()
    return MockPushChannel()
