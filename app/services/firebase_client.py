"""
Firebase initialization for the Firestore row store
"""

from __future__ import annotations

import base64
import json
import os
from functools import lru_cache
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore

from app.core.config import settings


def load_service_account() -> dict[str, Any] | None:
    """Read the service account from the first configured source.

    Sources are tried in order: inline JSON, base64 JSON, then a file path.
    """
    if settings.FIREBASE_CREDENTIALS_JSON:
        return json.loads(settings.FIREBASE_CREDENTIALS_JSON)
    if settings.FIREBASE_CREDENTIALS_B64:
        return json.loads(base64.b64decode(settings.FIREBASE_CREDENTIALS_B64).decode("utf-8"))
    path = settings.FIREBASE_CREDENTIALS_FILE
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    return None


@lru_cache(maxsize=1)
def get_firestore_client():
    """Return a cached Firestore client, or None when Firestore is disabled"""
    if not settings.USE_FIREBASE:
        return None

    if not firebase_admin._apps:
        account = load_service_account()
        if not account:
            raise RuntimeError(
                "USE_FIREBASE is set but no credentials were found. Set FIREBASE_CREDENTIALS_JSON, "
                "FIREBASE_CREDENTIALS_B64 or FIREBASE_CREDENTIALS_FILE"
            )
        firebase_admin.initialize_app(credentials.Certificate(account))

    return firestore.client()
