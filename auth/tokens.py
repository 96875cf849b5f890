"""
auth/tokens.py -- Password hashing and JWT issue/verify.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       user_id, role, iat and exp. Nothing is stored server side, so a token
       stays valid until exp even if the user's role changes meanwhile.
       decode_access_token() raises one of three UnauthenticatedError
       subclasses (missing / invalid / expired); the route layer renders all
       three as the same 401.

  Passwords: bcrypt directly (no passlib wrapper). The work factor comes from
       Settings.bcrypt_rounds. The _DUMMY_HASH constant enables timing
       equalization in UserStore.authenticate() so response time does not
       reveal whether an email is registered.

  SECRET_KEY: sourced from core.config.get_settings(). Settings validates
       the key at startup (see core/config.py).

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from auth.models import Claims
from core.config import get_settings
from core.errors import TokenExpiredError, TokenInvalidError, TokenMissingError

_ALGORITHM = "HS256"

# bcrypt only reads the first 72 bytes of its input. Longer passwords are
# refused, never truncated.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    A fresh salt is drawn on every call, so hashing the same password twice
    gives two different strings that both verify.

    Raises:
        ValueError: the password is longer than MAX_PASSWORD_BYTES in UTF-8.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Passwords over MAX_PASSWORD_BYTES never verify; no stored hash can have
    been made from one.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. UserStore.authenticate() verifies against it
# when the email is unknown.
_DUMMY_HASH: str = hash_password("catalogapi_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run one bcrypt comparison whose result is thrown away."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, role: str, issued_at: datetime | None = None) -> str:
    """Encode a signed JWT carrying the caller's id and role.

    Args:
        user_id:   Numeric user ID from the UserStore.
        role:      User role at issue time ("admin" or "user").
        issued_at: Issue instant. Defaults to now; exp is always
                   issued_at + Settings.token_expire_seconds.
    """
    settings = get_settings()
    iat = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "role": role,
        "iat": iat,
        "exp": iat + timedelta(seconds=settings.token_expire_seconds),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str | None) -> Claims:
    """Verify a JWT and return its Claims.

    Raises:
        TokenMissingError: token is None or empty.
        TokenExpiredError: signature is good but exp is in the past.
        TokenInvalidError: bad signature, wrong algorithm, or a payload
                           without a usable user_id / role / iat / exp.
    """
    if not token:
        raise TokenMissingError()
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except JWTError as exc:
        raise TokenInvalidError() from exc

    user_id = payload.get("user_id")
    role = payload.get("role")
    iat = payload.get("iat")
    exp = payload.get("exp")
    if type(user_id) is not int or not isinstance(role, str):
        raise TokenInvalidError()
    if not isinstance(iat, (int, float)) or not isinstance(exp, (int, float)):
        raise TokenInvalidError()
    return Claims(
        subject_id=user_id,
        role=role,
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )
