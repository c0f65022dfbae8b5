from typing import Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from jevah.auth.jwt_handler import decode_access_token
from jevah.db.mongo import get_database, USERS, BLACKLISTED_TOKENS
from jevah.utils.mongodb_utils import is_object_id, parse_object_id

logger = logging.getLogger(__name__)

# Extrait le token du header Authorization
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def resolve_user_from_token(token: Optional[str], db) -> Optional[dict]:
    """Return the user document a token belongs to, or None."""
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or not is_object_id(payload.get("sub")):
        return None
    if await db[BLACKLISTED_TOKENS].find_one({"token": token}):
        logger.warning("Blacklisted token presented")
        return None
    return await db[USERS].find_one({"_id": parse_object_id(payload["sub"])})


async def get_current_user(token: str = Depends(oauth2_scheme), db=Depends(get_database)) -> dict:
    """Récupère l'utilisateur courant à partir du token JWT."""
    user = await resolve_user_from_token(token, db)
    if not user:
        raise _unauthorized("Invalid or expired token")
    return user


async def get_current_user_optional(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db=Depends(get_database),
) -> Optional[dict]:
    """Version non bloquante: None when the token is missing or invalid."""
    return await resolve_user_from_token(token, db)
