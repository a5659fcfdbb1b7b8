from functools import lru_cache

import firebase_admin
from firebase_admin import credentials, initialize_app, firestore

from .config import settings


@lru_cache(maxsize=1)
def get_firebase_app() -> firebase_admin.App:
    """Initialise the default Firebase app once.

    Falls back to application default credentials when no service account
    file is configured.
    """
    creds_path = settings.FIREBASE_CREDS_PATH_ABSOLUTE
    if creds_path is None:
        return initialize_app()
    cred = credentials.Certificate(str(creds_path))
    return initialize_app(cred)


@lru_cache(maxsize=1)
def get_db():
    return firestore.client(app=get_firebase_app())
