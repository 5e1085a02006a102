import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials, exceptions

from responses import ExternalServiceError
from settings import FIREBASE_CREDENTIALS

logger = logging.getLogger(__name__)


def get_app():
    """Return the default firebase-admin app, initializing it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    if not FIREBASE_CREDENTIALS:
        raise ExternalServiceError("firebase", "Firebase is not configured", status_code=503)
    app = firebase_admin.initialize_app(credentials.Certificate(FIREBASE_CREDENTIALS))
    logger.info("Firebase app initialized")
    return app


def create_custom_token(uid: str, claims: Optional[dict] = None) -> str:
    app = get_app()
    try:
        token = auth.create_custom_token(uid, claims, app=app)
    except (ValueError, exceptions.FirebaseError) as e:
        logger.error("Firebase custom token for %s failed: %s", uid, e)
        raise ExternalServiceError("firebase", f"Failed to create Firebase token: {e}")
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token
