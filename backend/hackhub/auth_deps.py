from __future__ import annotations
from typing import Any
from uuid import UUID
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.db import get_session
from hackhub.security import decode_token
from hackhub.models.user import User, ROLE_ADMIN

security = HTTPBearer(auto_error=False)

def _claims(credentials: HTTPAuthorizationCredentials | None) -> dict[str, Any]:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        data = decode_token(credentials.credentials)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "access":
        raise HTTPException(status_code=401, detail="Wrong token type")
    try:
        data["sub"] = UUID(str(data.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token")
    return data

async def get_token_claims(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> dict[str, Any]:
    return _claims(credentials)

async def get_current_user(
    claims: dict[str, Any] = Depends(get_token_claims),
    session: AsyncSession = Depends(get_session),
) -> User:
    user = await session.get(User, claims["sub"])
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user

async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> User | None:
    """Public endpoints that personalise the response when a valid token is sent."""
    if credentials is None:
        return None
    try:
        claims = _claims(credentials)
    except HTTPException:
        return None
    return await session.get(User, claims["sub"])

async def require_admin(
    claims: dict[str, Any] = Depends(get_token_claims),
    session: AsyncSession = Depends(get_session),
) -> UUID:
    """
    Role from the token first; when the token does not say ADMIN (older token, freshly
    promoted user) the users table decides. Returns the admin's user id.
    """
    if claims.get("role") == ROLE_ADMIN:
        return claims["sub"]
    user = await session.get(User, claims["sub"])
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if user.role != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Forbidden")
    return user.id
