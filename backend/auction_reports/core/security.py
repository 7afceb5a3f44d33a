"""JWT bearer tokens for the role gate.

Tokens are issued by the identity provider in front of this service (or by
`scripts/issue_token.py` locally) and carry `sub` and `role` claims.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from auction_reports.config import settings


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token from a payload dict.

    Expected to include `sub` and `role` in `data`.
    """

    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_access_token_for_subject(
    subject: str,
    role: str,
    expires_minutes: Optional[int] = None,
) -> str:
    minutes = expires_minutes or settings.access_token_expire_minutes
    return create_access_token({"sub": subject, "role": role}, expires_delta=timedelta(minutes=minutes))


def decode_access_token(token: str) -> Optional[dict]:
    """Decode JWT access token; returns payload or None if invalid."""

    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
