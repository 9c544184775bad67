from __future__ import annotations
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from portal.config import settings
from portal.security import decode_token

security = HTTPBearer(auto_error=False)

async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Returns the admin's email; every /admin route except login depends on it."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"})
    try:
        data = decode_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "access" or data.get("role") != "admin":
        raise HTTPException(status_code=401, detail="Wrong token type")
    if data.get("sub") != settings.admin_email:
        raise HTTPException(status_code=401, detail="Unknown admin")
    return data["sub"]
