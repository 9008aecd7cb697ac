# services/firestore_client.py
import os
import logging
from typing import Any, Dict, Optional

from google.api_core import exceptions as gexc
from google.auth import exceptions as gauth_exc
from google.cloud import firestore

from schemas import AnalysisRequest, AnalysisResult
from services.errors import PersistenceError

log = logging.getLogger(__name__)

PROFILE_ANALYSES = "profileAnalyses"
BIO_SUGGESTIONS = "bioSuggestions"
PROMPT_RESPONSES = "promptResponses"
CONVERSATION_STARTERS = "conversationStarters"

_db = None


def enabled() -> bool:
    return os.getenv("FIRESTORE_ENABLED", "true").lower() == "true"


def _db_handle() -> firestore.Client:
    global _db
    if _db is None:
        _db = firestore.Client(project=os.getenv("FIREBASE_PROJECT_ID") or None)
    return _db


def _write(collection: str, data: Dict[str, Any]) -> str:
    """Add one document under an auto-generated id and return the id."""
    try:
        ref = _db_handle().collection(collection).document()
        ref.set({**data, "createdAt": firestore.SERVER_TIMESTAMP})
    except (gexc.GoogleAPIError, gauth_exc.GoogleAuthError, OSError, ValueError) as e:
        raise PersistenceError(f"write to {collection} failed: {e}") from e
    return ref.id


def save_analysis(user_id: str, req: AnalysisRequest, result: AnalysisResult) -> str:
    return _write(PROFILE_ANALYSES, {
        "userId": user_id,
        "analysis": result.model_dump(mode="json", exclude={"fallback"}),
        "images": list(req.images),
        "bio": req.bio,
        "goals": req.goals,
        "preferences": req.preferences,
    })


def save_record(collection: str, user_id: str, payload: Dict[str, Any]) -> str:
    return _write(collection, {"userId": user_id, **payload})


def record(collection: str, user_id: str, payload: Dict[str, Any]) -> Optional[str]:
    """Fire-and-forget write: failures are logged and swallowed."""
    if not enabled():
        return None
    try:
        doc_id = save_record(collection, user_id, payload)
    except PersistenceError as e:
        log.error("persistence failed for user %s: %s", user_id, e)
        return None
    log.info("stored %s/%s", collection, doc_id)
    return doc_id


def record_analysis(user_id: str, req: AnalysisRequest, result: AnalysisResult) -> Optional[str]:
    if result.fallback:
        log.info("not storing sample result for user %s", user_id)
        return None
    if not enabled():
        return None
    try:
        doc_id = save_analysis(user_id, req, result)
    except PersistenceError as e:
        log.error("persistence failed for user %s: %s", user_id, e)
        return None
    log.info("stored %s/%s", PROFILE_ANALYSES, doc_id)
    return doc_id
