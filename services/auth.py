# services/auth.py
import os
import logging
from typing import Any, Dict, Optional

from fastapi import Header, HTTPException
from google.auth import exceptions as gauth_exc
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from services.errors import AuthError

log = logging.getLogger(__name__)

FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

_request = google_requests.Request()


def verify_token(token: str) -> Dict[str, Any]:
    """Check a Firebase ID token and return its claims."""
    if not token:
        raise AuthError("No token provided")
    try:
        claims = id_token.verify_firebase_token(token, _request, audience=FIREBASE_PROJECT_ID)
    except (ValueError, gauth_exc.GoogleAuthError) as e:
        raise AuthError(f"invalid token: {e}") from e
    if not claims or not (claims.get("user_id") or claims.get("sub")):
        raise AuthError("token has no subject")
    return claims


def _bearer(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        return ""
    return authorization[len("Bearer "):].strip()


def require_user(authorization: Optional[str] = Header(default=None)) -> str:
    """FastAPI dependency: uid of the caller, or 401 before any model call is made."""
    try:
        claims = verify_token(_bearer(authorization))
    except AuthError as e:
        log.info("rejected request: %s", e)
        raise HTTPException(status_code=401, detail="Unauthorized")
    return claims.get("user_id") or claims["sub"]
