"""
Credentials and the auth guard.

Passwords are stored as bcrypt hashes. Tokens are HS256 JWTs carrying
{"user": {"id": <user id>}} and are read from the x-auth-token header.
"""
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

import bcrypt
import jwt
from bson import ObjectId
from fastapi import Depends, Header

from config import Settings, get_settings
from errors import Unauthorized

logger = logging.getLogger(__name__)

TOKEN_HEADER = "x-auth-token"
ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=10)).decode("utf-8")


def check_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


def gravatar_url(email: str) -> str:
    digest = hashlib.md5(email.strip().lower().encode()).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?" + urlencode({"s": "200", "r": "pg", "d": "mm"})


def issue_token(user_id: str, settings: Settings) -> str:
    payload = {
        "user": {"id": user_id},
        "exp": datetime.now(timezone.utc) + timedelta(seconds=settings.jwt_expires_in),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def decode_token(token: str, settings: Settings) -> str:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected token: %s", e)
        raise Unauthorized("Token is not valid") from None
    user = payload.get("user")
    if not isinstance(user, dict) or not ObjectId.is_valid(str(user.get("id", ""))):
        raise Unauthorized("Token is not valid")
    return str(user["id"])


def current_user_id(
    token: Optional[str] = Header(None, alias=TOKEN_HEADER),
    settings: Settings = Depends(get_settings),
) -> str:
    """Route dependency: the id of the authenticated user, or 401."""
    if not token:
        raise Unauthorized("No token, authorization denied")
    return decode_token(token, settings)
