# app/routes/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.rate_limit import maybe_limit
from app.core.security import create_access_token
from app.dependencies.auth import get_current_user
from app.models.user import User
from app.schemas.auth import LoginIn, RegisterIn, ThemeIn, TokenOut, UserOut
from app.services.users import LoginLockedError, authenticate_user, register_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=TokenOut, status_code=201)
@maybe_limit("5/15minutes")
def register(request: Request, payload: RegisterIn, db: Session = Depends(get_db)):
    user = register_user(db, payload.username, payload.password)
    return TokenOut(access_token=create_access_token(user.username), username=user.username)


@router.post("/login", response_model=TokenOut)
@maybe_limit("5/15minutes")
def login(request: Request, payload: LoginIn, db: Session = Depends(get_db)):
    try:
        user = authenticate_user(db, payload.username, payload.password)
    except LoginLockedError:
        logger.warning("Login locked out for username=%s", payload.username.strip())
        raise HTTPException(
            status_code=429,
            detail="Too many failed login attempts. Please try again later.",
        )
    return TokenOut(access_token=create_access_token(user.username), username=user.username)


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.put("/me/theme", response_model=UserOut)
def set_theme(
    payload: ThemeIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    user.theme = payload.theme
    db.commit()
    db.refresh(user)
    return user
