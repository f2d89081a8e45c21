# recruitflow/core/firebase.py - Firestore client for the "firestore" store backend
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore

from recruitflow.core.config import get_settings

logger = logging.getLogger(__name__)

_firestore_client: Optional[firestore.Client] = None


def _firebase_app() -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        config = get_settings().FIREBASE_CONFIG
        if not config.project_id:
            raise RuntimeError("STORE_BACKEND is 'firestore' but FIREBASE_CONFIG__project_id is not set")
        app = firebase_admin.initialize_app(credentials.Certificate(config.credentials()))
        logger.info("Firebase initialized for project %s", config.project_id)
        return app


def get_firestore_client() -> firestore.Client:
    """Firestore client bound to the default Firebase app, created on first use"""
    global _firestore_client
    if _firestore_client is None:
        _firestore_client = firestore.client(app=_firebase_app())
    return _firestore_client


def initialize_firebase():
    """Create the client at app startup"""
    get_firestore_client()


def close_firestore_client():
    global _firestore_client
    _firestore_client = None
    try:
        firebase_admin.delete_app(firebase_admin.get_app())
    except ValueError:
        logger.debug("No Firebase app to delete")
