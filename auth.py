# auth.py
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

import bcrypt
from fastapi import Depends, HTTPException, Request
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from models import User
from schemas import Credentials

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"


@dataclass(frozen=True)
class AuthConfig:
  secret: str
  session_minutes: int = 60
  algorithm: str = "HS256"
  sign_in_page: str = "/login"
  home_page: str = "/dashboard"

  @classmethod
  def from_env(cls) -> "AuthConfig":
    secret = os.getenv("AUTH_SECRET", "").strip()
    if not secret:
      raise RuntimeError("AUTH_SECRET is not set in backend .env")
    minutes = int(os.getenv("AUTH_SESSION_MINUTES", "60").strip() or 60)
    return cls(secret=secret, session_minutes=minutes)


class AuthError(Exception):
  """Sign-in failure tagged with a ``type`` such as ``CredentialsSignin``."""

  def __init__(self, type: str, message: Optional[str] = None):
    super().__init__(message or type)
    self.type = type


def hash_password(password: str) -> str:
  # bcrypt only looks at the first 72 bytes
  return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
  try:
    return bcrypt.checkpw(password.encode("utf-8")[:72], hashed.encode("utf-8"))
  except ValueError:
    logger.warning("Stored password hash is not a bcrypt hash")
    return False


def get_user(session: Session, email: str) -> Optional[User]:
  try:
    return session.exec(select(User).where(User.email == email)).first()
  except SQLAlchemyError as error:
    logger.exception("Failed to fetch user %s", email)
    raise RuntimeError("Failed to fetch user.") from error


def authorize(session: Session, credentials: Mapping) -> Optional[User]:
  try:
    parsed = Credentials.model_validate({
      "email": credentials.get("email"),
      "password": credentials.get("password"),
    })
  except ValidationError:
    logger.info("Invalid credentials")
    return None

  user = get_user(session, parsed.email)
  if user and verify_password(parsed.password, user.password):
    return user
  logger.info("Invalid credentials")
  return None


def create_session_token(config: AuthConfig, user: User) -> str:
  expire = datetime.now(timezone.utc) + timedelta(minutes=config.session_minutes)
  claims = {"sub": user.id, "email": user.email, "name": user.name, "exp": expire}
  return jwt.encode(claims, config.secret, algorithm=config.algorithm)


def decode_session_token(config: AuthConfig, token: str) -> Dict[str, Any]:
  return jwt.decode(token, config.secret, algorithms=[config.algorithm])


def sign_in(config: AuthConfig, session: Session, method: str, credentials: Mapping) -> str:
  """Check ``credentials`` and return a signed session token.

  Raises ``AuthError`` with type ``CredentialsSignin`` on a bad email/password
  and ``CallbackRouteError`` when the check itself could not run.
  """
  if method != "credentials":
    raise AuthError("CallbackRouteError", f"Unsupported sign-in method: {method}")
  try:
    user = authorize(session, credentials)
  except RuntimeError as error:
    raise AuthError("CallbackRouteError", str(error)) from error
  if user is None:
    raise AuthError("CredentialsSignin")
  return create_session_token(config, user)


def get_auth_config(request: Request) -> AuthConfig:
  return request.app.state.auth_config


def authorized(request: Request, config: AuthConfig = Depends(get_auth_config)) -> Dict[str, Any]:
  token = request.cookies.get(SESSION_COOKIE)
  if not token:
    raise HTTPException(status_code=401, detail="Not signed in")
  try:
    return decode_session_token(config, token)
  except JWTError:
    raise HTTPException(status_code=401, detail="Session expired or invalid")
