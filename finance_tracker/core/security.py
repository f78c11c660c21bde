# finance_tracker/core/security.py

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from werkzeug.security import generate_password_hash, check_password_hash

from finance_tracker.core.exceptions import UnauthorizedError

ALGORITHM = "HS256"


def utc_now() -> datetime:
    """Naive UTC timestamp, the form stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- Passwords ---

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


# --- Session credential ---

def create_access_token(user_id: str, secret: str, expires_days: int = 7,
                        now: Optional[datetime] = None) -> str:
    issued_at = now or utc_now()
    payload = {
        "sub": user_id,
        "iat": issued_at.replace(tzinfo=timezone.utc),
        "exp": (issued_at + timedelta(days=expires_days)).replace(tzinfo=timezone.utc),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str) -> str:
    """Returns the user id (subject) of a valid token."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Invalid token.")

    subject = payload.get("sub")
    if not subject:
        raise UnauthorizedError("Invalid token.")
    return subject


# --- One-time login codes ---

def generate_numeric_code(length: int = 6) -> str:
    """
    Builds a numeric code with one random byte per digit (byte % 10).

    256 is not a multiple of 10, so digits 0-5 come out slightly more often
    than 6-9. Kept as is, see DESIGN.md.
    """
    random_bytes = secrets.token_bytes(length)
    return "".join(str(byte % 10) for byte in random_bytes)


def hash_login_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
