from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import jwt

from ..config import Settings


ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(data: Dict[str, Any], settings: Settings) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"iat": int(now.timestamp()), "exp": int(expire.timestamp())})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    # Raises jose.JWTError (ExpiredSignatureError for stale tokens)
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
