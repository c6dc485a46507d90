import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Type

from fastapi import Depends, Header
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, JWT_SECRET
from errors import StoreError, TokenExpired, TokenInvalid, TokenMissing, Unauthorized

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash has an unknown format")
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=ALGORITHM)


def verify(token: Optional[str]) -> Dict[str, Any]:
    """Decode a session token into {id, email, role}."""
    if not token:
        raise TokenMissing()
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTError:
        raise TokenInvalid()
    if not payload.get("id") or not payload.get("role"):
        raise TokenInvalid()
    return {"id": payload["id"], "email": payload.get("email"), "role": payload["role"]}


# Dependency to get current user

def get_current_user(authorization: Optional[str] = Header(default=None)) -> Dict[str, Any]:
    token = authorization
    if token and token.startswith("Bearer "):
        token = token.split(" ", 1)[1]
    return verify(token)


def require_role(*roles: str, denial: Type[StoreError] = Unauthorized):
    """Build a dependency that only lets users holding one of roles through."""

    def check_role(current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
        if current_user.get("role") not in roles:
            logger.warning("Denied %s access for user %s (needs %s)", current_user.get("role"), current_user.get("id"), "/".join(roles))
            raise denial()
        return current_user

    return check_role


require_admin = require_role("admin")
