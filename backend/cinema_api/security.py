import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from cinema_api import config
from cinema_api.database import USERS, get_db

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db=Depends(get_db),
):
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Not authorized, no token")
    try:
        payload = jwt.decode(credentials.credentials, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        raise _unauthorized("Invalid token")

    subject = payload.get("sub")
    if subject is None:
        raise _unauthorized("Invalid token")
    try:
        user_id = ObjectId(subject)
    except (InvalidId, TypeError):
        raise _unauthorized("Invalid token")

    user = await db[USERS].find_one({"_id": user_id}, {"password": 0})
    if user is None:
        raise _unauthorized("Not authorized, user not found")
    return user


def authorize(*roles: str):
    """Dependency factory rejecting users whose role is not in ``roles``."""

    async def check_role(user: dict = Depends(get_current_user)):
        if user.get("role") not in roles:
            logger.warning("User %s with role %s denied", user["_id"], user.get("role"))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {user.get('role')} is not authorized to access this route",
            )
        return user

    return check_role


is_admin_user = authorize("admin")
