"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    admin = "admin"
    user = "user"


@dataclass
class User:
    """A registered identity.

    email is the login key and is unique (exact, case-sensitive match).
    hashed_password is a bcrypt hash and never leaves the auth layer --
    routes serialize users through UserPublic in api/models.py.

    id is None until the UserStore assigns one.
    """

    name: str
    email: str
    hashed_password: str
    role: str  # "admin" | "user"
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Claims:
    """Verified payload of a bearer token.

    Built only by auth.tokens.decode_access_token() after the signature and
    expiry checks pass. The role is whatever was true at issue time.
    """

    subject_id: int
    role: str
    issued_at: datetime
    expires_at: datetime
