import secrets
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose.exceptions import ExpiredSignatureError, JWTError
from sqlmodel import Session

from ..config import Settings, get_settings
from ..database import get_session
from ..models.user import User
from .jwt import decode_access_token


# Cost factor 10, i.e. 2**10 key expansion rounds
BCRYPT_ROUNDS = 10
# bcrypt only reads this many bytes; longer input is cut rather than refused
BCRYPT_MAX_BYTES = 72
ACCESS_TOKEN_COOKIE = "access_token"


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of ``password``.

    Only the first 72 bytes of the UTF-8 encoding take part in the hash.
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), stored.strip().encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Checked against when the email is unknown, so both 401 paths cost one bcrypt round
DUMMY_PASSWORD_HASH = hash_password(secrets.token_urlsafe(16))


bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> User:
    # Default response for invalid tokens
    def _raise_invalid(detail: str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        _raise_invalid("Not authenticated")

    try:
        payload = decode_access_token(token, settings)
    except ExpiredSignatureError:
        _raise_invalid("Token expired")
    except JWTError:
        _raise_invalid("Invalid token")

    sub = payload.get("sub")
    if sub is None:
        _raise_invalid("Invalid token: missing subject")
    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        _raise_invalid("Invalid token: bad subject format")

    user = session.get(User, user_id)
    if user is None:
        _raise_invalid("User not found")
    return user
