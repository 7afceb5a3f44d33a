from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auction_reports.config import settings
from auction_reports.core.security import decode_access_token
from auction_reports.database import get_db
from auction_reports.models import RoleName
from auction_reports.services.insight_composer import InsightComposer
from auction_reports.services.table_store import TableStore


def _token_url() -> str:
    if settings.api_prefix:
        prefix = settings.api_prefix.rstrip("/")
        return f"{prefix}/auth/token"
    return "/auth/token"


oauth2_scheme = OAuth2PasswordBearer(tokenUrl=_token_url(), auto_error=False)

_DB_DEP = Depends(get_db)
_TOKEN_DEP = Depends(oauth2_scheme)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: RoleName


def get_current_user(token: Optional[str] = _TOKEN_DEP) -> CurrentUser:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    try:
        role = RoleName(str(payload.get("role") or "").strip().lower())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
    return CurrentUser(id=str(payload["sub"]), role=role)


def require_roles(*roles: RoleName) -> Callable:
    _CURRENT_USER_DEP = Depends(get_current_user)

    def dependency(user: CurrentUser = _CURRENT_USER_DEP) -> CurrentUser:
        if roles:
            # Admin has access to everything
            if user.role == RoleName.admin:
                return user
            if user.role not in roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role"
                )
        return user

    return dependency


def get_store(db: AsyncSession = _DB_DEP) -> TableStore:
    return TableStore(db)


def get_insight_composer(request: Request) -> InsightComposer:
    composer = getattr(request.app.state, "insight_composer", None)
    if composer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Insight composer is not configured",
        )
    return composer


# Shorthands used by the routers.
read_access = require_roles(RoleName.editor, RoleName.viewer)
write_access = require_roles(RoleName.editor)
admin_access = require_roles(RoleName.admin)
