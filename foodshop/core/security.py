from __future__ import annotations

import hmac

from fastapi import Header, HTTPException
from pydantic import BaseModel

from foodshop.core.config import get_settings


class AdminIdentity(BaseModel):
    is_admin: bool
    key_id: str | None = None


def _auth_error(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def _extract_api_key(authorization: str | None, x_api_key: str | None) -> str | None:
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise _auth_error("invalid authorization header")
        return token.strip()
    if x_api_key and x_api_key.strip():
        return x_api_key.strip()
    return None


def get_admin_identity(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
) -> AdminIdentity:
    settings = get_settings()
    if not settings.auth_enabled:
        return AdminIdentity(is_admin=True, key_id="auth-disabled")

    api_key = _extract_api_key(authorization, x_api_key)
    if not api_key:
        raise _auth_error("missing api key")
    if not hmac.compare_digest(api_key.encode("utf-8"), settings.admin_api_key.encode("utf-8")):
        raise _auth_error("invalid api key")
    return AdminIdentity(is_admin=True, key_id="admin")


def require_admin(identity: AdminIdentity) -> None:
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="admin session required")
