"""Credential dependencies for the three caller classes.

- Owners: identity-provider JWT (verified here, issued elsewhere)
- Participants: the opaque session token
- Maintenance job: a shared bearer secret
"""

import re
import secrets
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from interview_api.config import settings
from interview_api.database import get_db
from interview_api.errors import NotConfigured, Unauthorized
from interview_api.models.user import User
from interview_api.services import owner_service

security = HTTPBearer(auto_error=False)

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)


def _strip_bearer(value: Optional[str]) -> str:
    return _BEARER_PREFIX.sub("", value or "").strip()


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")


def get_current_owner(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise Unauthorized("Missing authorization token")
    payload = decode_token(credentials.credentials)
    subject = payload.get("sub")
    if not subject:
        raise Unauthorized("Invalid token payload")
    return owner_service.get_owner_by_external_id(db, subject)


def get_session_token(request: Request) -> Optional[str]:
    """Participant token from X-Session-Token, Authorization, or ?token=."""
    header = request.headers.get("x-session-token") or request.headers.get("authorization")
    value = _strip_bearer(header) if header else (request.query_params.get("token") or "").strip()
    return value or None


def require_internal_secret(request: Request) -> None:
    expected = settings.INTERNAL_CRON_SECRET
    if not expected:
        raise NotConfigured("Internal cron not configured")
    supplied = request.headers.get("x-internal-secret") or _strip_bearer(request.headers.get("authorization"))
    if not supplied or not secrets.compare_digest(supplied.encode(), expected.encode()):
        raise Unauthorized("Unauthorized")
