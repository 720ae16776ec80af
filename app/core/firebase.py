import base64
import json
from typing import Any

import firebase_admin
import structlog
from firebase_admin import credentials, firestore

from app.core.config import settings

logger = structlog.get_logger(__name__)

# Global Firebase app instance, set during application startup
firebase_app: firebase_admin.App | None = None


def _load_service_account() -> dict[str, Any] | None:
    if settings.FIREBASE_SERVICE_ACCOUNT_KEY:
        parsed: dict[str, Any] = json.loads(settings.FIREBASE_SERVICE_ACCOUNT_KEY)
        return parsed
    if settings.FIREBASE_SERVICE_ACCOUNT_KEY_BASE64:
        decoded = base64.b64decode(settings.FIREBASE_SERVICE_ACCOUNT_KEY_BASE64).decode("utf-8")
        parsed = json.loads(decoded)
        return parsed
    return None


def init_firebase() -> firebase_admin.App | None:
    """
    Initialize the Firebase Admin SDK once per process.

    Credentials come from FIREBASE_SERVICE_ACCOUNT_KEY (JSON), then
    FIREBASE_SERVICE_ACCOUNT_KEY_BASE64, then application default credentials.
    Initialization errors are logged and leave the service running without a store.

    Returns:
        The initialized app, or None if initialization failed
    """
    global firebase_app
    if firebase_app is not None:
        return firebase_app

    options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
    try:
        service_account = _load_service_account()
        if service_account is not None:
            firebase_app = firebase_admin.initialize_app(
                credentials.Certificate(service_account), options
            )
        else:
            firebase_app = firebase_admin.initialize_app(options=options)
        logger.info("firebase_initialized", project=firebase_app.project_id)
    except Exception as e:
        logger.error("firebase_initialization_failed", error=str(e))
        firebase_app = None
    return firebase_app


def is_initialized() -> bool:
    return firebase_app is not None


def get_firestore_client() -> Any:
    """
    Get a Firestore client bound to the initialized Firebase app.

    Raises:
        RuntimeError: If Firebase is not initialized
    """
    if firebase_app is None:
        raise RuntimeError("Firebase Admin is not initialized")
    return firestore.client(app=firebase_app)
