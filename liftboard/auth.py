import logging
from typing import Optional

from fastapi import Header, HTTPException
from jose import JWTError
from jose import jwt as jose_jwt
from pydantic import BaseModel

from .config import APP_JWT_ALGORITHM, APP_JWT_SECRET

logger = logging.getLogger(__name__)


class CurrentUser(BaseModel):
    id: str
    role: Optional[str] = None
    worker_id: Optional[str] = None


def app_token_key(secret: str = APP_JWT_SECRET) -> str:
    """App tokens are signed with a key derived from the shared JWT secret"""
    return f"APP:{secret}"


def verify_app_token(token: str, secret: str = APP_JWT_SECRET) -> Optional[dict]:
    """
    Verify and decode an app token.

    Returns the claims, or None when the signature or expiry check fails.
    """
    try:
        return jose_jwt.decode(
            token,
            app_token_key(secret),
            algorithms=[APP_JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError as e:
        logger.warning(f"App token verification failed: {e}")
        return None


async def get_current_user(x_app_token: Optional[str] = Header(None)) -> CurrentUser:
    """FastAPI dependency resolving the caller from the x-app-token header"""
    if not x_app_token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    claims = verify_app_token(x_app_token)
    if not claims or not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Unauthorized")

    return CurrentUser(
        id=str(claims["sub"]),
        role=claims.get("role"),
        worker_id=claims.get("worker_id") or None,
    )
