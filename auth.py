"""
Password hashing, JWT issue/verify and the FastAPI dependencies that load
the calling user and check their role.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

import config
from database import get_document_by_id
from errors import AuthError, Forbidden, UserInactive

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: dict, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": user["id"], "email": user["email"], "role": user["role"], "exp": expire}
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def public_user(user: dict) -> dict:
    data = dict(user)
    data.pop("password_hash", None)
    return data


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> dict:
    if credentials is None:
        raise AuthError("Not authenticated: no bearer token provided.")
    try:
        payload = jwt.decode(credentials.credentials, config.SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthError("Your session has expired. Please log in again.")
    except JWTError:
        raise AuthError("Invalid authentication token.")

    user_id = payload.get("sub")
    user = get_document_by_id("user", user_id) if user_id else None
    if user is None:
        raise AuthError("No user found for this token.")
    if not user.get("active", True):
        raise UserInactive("This account has been deactivated.")
    return public_user(user)


def require_roles(*roles: str):
    """Dependency factory: the current user must hold one of ``roles``."""
    def checker(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user.get("role") not in roles:
            raise Forbidden("You do not have permission to perform this action.")
        return current_user
    return checker
