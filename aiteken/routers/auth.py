import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from jose.exceptions import JOSEError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, select

from ..config import Settings, get_settings
from ..core.jwt import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token
from ..core.security import (
    ACCESS_TOKEN_COOKIE,
    DUMMY_PASSWORD_HASH,
    get_current_user,
    hash_password,
    verify_password,
)
from ..database import get_session
from ..models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["auth"],
)

INVALID_CREDENTIALS = "Invalid email or password"


# No field-level rules: empty strings are stored as given
class RegisterIn(SQLModel):
    username: str
    email: str
    password: str


class RegisterOut(SQLModel):
    message: str
    userId: int


class LoginIn(SQLModel):
    email: str
    password: str


class LoginOut(SQLModel):
    message: str
    userId: int


class UserRead(SQLModel):
    user_id: int
    username: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@router.post(
    "/register",
    response_model=RegisterOut,
    status_code=status.HTTP_201_CREATED,
)
def register_user(
    payload: RegisterIn,
    session: Session = Depends(get_session),
):
    try:
        user = User(
            username=payload.username,
            email=payload.email,
            password_hash=hash_password(payload.password),
        )
        session.add(user)
        session.commit()
        session.refresh(user)
    except (SQLAlchemyError, ValueError):
        logger.exception("Error registering user")
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error registering user",
        )

    logger.info("Registered user %s", user.user_id)
    return RegisterOut(message="User registered successfully", userId=user.user_id)


@router.post(
    "/login",
    response_model=LoginOut,
    status_code=status.HTTP_200_OK,
)
def login(
    payload: LoginIn,
    response: Response,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    # Duplicate emails are possible, the oldest account answers
    stmt = select(User).where(User.email == payload.email).order_by(User.user_id).limit(1)
    try:
        user = session.exec(stmt).first()
    except SQLAlchemyError:
        logger.exception("Error logging in")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error logging in",
        )

    if user is None:
        verify_password(payload.password, DUMMY_PASSWORD_HASH)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )
    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )

    try:
        token = create_access_token({"sub": str(user.user_id)}, settings)
    except JOSEError:
        logger.exception("Error signing access token for user %s", user.user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error logging in",
        )

    # HttpOnly cookie keeps the token away from JS/localStorage.
    # Cross-site deployments need SameSite=None together with Secure.
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )

    return LoginOut(message="Login successful", userId=user.user_id)


@router.get(
    "/me",
    response_model=UserRead,
    status_code=status.HTTP_200_OK,
)
def me(current_user: User = Depends(get_current_user)):
    return UserRead(
        user_id=current_user.user_id,
        username=current_user.username,
        email=current_user.email,
        created_at=current_user.created_at,
        updated_at=current_user.updated_at,
    )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
)
def logout(response: Response):
    response.delete_cookie(key=ACCESS_TOKEN_COOKIE, path="/")
    return None
