from datetime import datetime, timedelta
from typing import Optional
import logging

from jose import jwt, JWTError

from jevah.config import settings

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crée un token JWT signé avec les informations fournies.

    :param data: Données à encoder (ex: {"user_id": "65f..."})
    :param expires_delta: Durée de validité du token
    :return: Token JWT encodé
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})

    if "user_id" in to_encode:
        to_encode["sub"] = str(to_encode.pop("user_id"))

    token = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)
    logger.info(f"Token generated for sub={to_encode.get('sub')}, expires at {expire}")
    return token


def decode_access_token(token: str) -> Optional[dict]:
    """
    Décode et vérifie un token JWT.

    Retourne le payload si le token est valide et contient 'sub', sinon None.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token decode failed: {e}")
        return None

    if not payload.get("sub"):
        logger.warning("Token valid but 'sub' missing from payload")
        return None
    return payload


def token_expiry(token: str) -> Optional[datetime]:
    """Expiry of a token without verifying its signature."""
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get("exp")
    return datetime.utcfromtimestamp(exp) if exp else None
