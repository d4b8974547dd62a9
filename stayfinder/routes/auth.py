# Accounts and sign-in.
# Every account is a guest or a host; the role claim in its token uses the same
# names as the booking actors, so route guards and booking rules agree on who is who.
from __future__ import annotations

import logging
import os
import time
from typing import Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, Header, status
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..booking_state import Actor
from ..rate_limit import rate_limit

router = APIRouter()
logger = logging.getLogger("stayfinder.auth")

TOKEN_SECRET = os.getenv("STAYFINDER_JWT_SECRET", "dev-secret-change-me")
TOKEN_ALGORITHM = "HS256"
TOKEN_ISSUER = "stayfinder"
TOKEN_TTL_SECONDS = int(os.getenv("STAYFINDER_TOKEN_TTL_HOURS", "168")) * 3600
# bcrypt_sha256 pre-hashes, so passphrases longer than 72 bytes are not truncated
passwords = CryptContext(schemes=["bcrypt_sha256"], deprecated="auto")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def issue_token(account: models.User) -> str:
    issued_at = int(time.time())
    claims = {
        "iss": TOKEN_ISSUER,
        "sub": str(account.id),
        "role": account.role,
        "iat": issued_at,
        "exp": issued_at + TOKEN_TTL_SECONDS,
    }
    return jwt.encode(claims, TOKEN_SECRET, algorithm=TOKEN_ALGORITHM)


def read_token(token: str) -> int:
    """Validate a bearer token and return the id of the account it was issued to."""
    try:
        claims = jwt.decode(
            token,
            TOKEN_SECRET,
            algorithms=[TOKEN_ALGORITHM],
            issuer=TOKEN_ISSUER,
            options={"require": ["exp", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Session expired, please sign in again") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Token not accepted") from exc
    subject = claims["sub"]
    if not subject.isdigit():
        raise _unauthorized("Token not accepted")
    return int(subject)


def _bearer(authorization: Optional[str]) -> Optional[str]:
    # None when no Authorization header was sent at all
    if authorization is None:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Expected 'Authorization: Bearer <token>'")
    return token


def _account_for(db: Session, token: str) -> models.User:
    account = db.get(models.User, read_token(token))
    if account is None:
        raise _unauthorized("Account no longer exists")
    return account


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> models.User:
    token = _bearer(authorization)
    if token is None:
        raise _unauthorized("Sign in required")
    return _account_for(db, token)


def get_current_user_optional(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> Optional[models.User]:
    """Signed-in account, or None for anonymous callers and tokens that do not check out."""
    try:
        token = _bearer(authorization)
        return _account_for(db, token) if token else None
    except HTTPException:
        return None


def require_host(account: models.User = Depends(get_current_user)) -> models.User:
    if account.role != Actor.HOST.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only hosts can manage listings")
    return account


def _signed_in(account: models.User) -> schemas.TokenResponse:
    return schemas.TokenResponse(access_token=issue_token(account), user=schemas.UserRead.model_validate(account))


@router.post(
    "/auth/signup",
    response_model=schemas.TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("signup"))],
)
def signup(payload: schemas.UserCreate, db: Session = Depends(get_db)) -> schemas.TokenResponse:
    """Open a guest or host account and sign it in. Emails are unique, compared lowercased."""
    account = models.User(
        name=payload.name.strip(),
        email=payload.email,
        password_hash=passwords.hash(payload.password),
        role=payload.role,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="An account with this email already exists"
        ) from exc
    db.refresh(account)
    logger.info("auth.signup", extra={"user_id": account.id, "role": account.role})
    return _signed_in(account)


@router.post("/auth/login", response_model=schemas.TokenResponse, dependencies=[Depends(rate_limit("login"))])
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)) -> schemas.TokenResponse:
    account = db.query(models.User).filter(models.User.email == payload.email).one_or_none()
    if account is None or not passwords.verify(payload.password, account.password_hash):
        raise _unauthorized("Email or password is incorrect")
    return _signed_in(account)


@router.get("/auth/me", response_model=schemas.UserRead)
def me(account: models.User = Depends(get_current_user)) -> models.User:
    return account
