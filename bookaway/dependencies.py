"""Reusable FastAPI dependencies for auth and database access."""
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .auth import decode_token
from .config import get_settings
from .database import get_db
from .exceptions import AuthenticationError
from .models import User

settings = get_settings()
oauth_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/auth/login", auto_error=False)


def get_current_user(token: Optional[str] = Depends(oauth_scheme), db: Session = Depends(get_db)) -> User:
    if not token:
        raise AuthenticationError("Not authenticated")
    payload = decode_token(token)
    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError("Missing subject in token")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Malformed subject in token") from exc
    user = db.get(User, user_id)
    if not user:
        raise AuthenticationError("User no longer exists")
    return user
