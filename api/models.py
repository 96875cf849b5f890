"""
API request and response models for the Catalog REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Request models declare every field Optional: presence is a domain rule
enforced by the stores (MissingFieldError -> 400), while type, enum and sign
checks happen here (RequestValidationError -> 422). An empty string on a
non-text field (role, price, stock) is read as absent so it reaches the
store's presence check instead of failing type parsing.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Role, User
from auth.tokens import MAX_PASSWORD_BYTES
from catalog.models import Product


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)
    role: Optional[Role] = None

    blank_role_is_absent = field_validator("role", mode="before")(_blank_to_none)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes in UTF-8")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserPublic(BaseModel):
    """A user as exposed over HTTP -- never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    user: UserPublic


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int


class MeResponse(BaseModel):
    """Verified claims of the caller's token."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    role: str
    expires_at: str


# ---------------------------------------------------------------------------
# Products -- request models
# ---------------------------------------------------------------------------


class ProductFields(BaseModel):
    """Request body for POST /products and PUT /products/{id}.

    POST requires all four fields (checked by the repository). PUT applies
    whichever are present.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: Optional[float] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)

    blank_number_is_absent = field_validator("price", "stock", mode="before")(_blank_to_none)


# ---------------------------------------------------------------------------
# Products -- response models
# ---------------------------------------------------------------------------


class ProductOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str
    price: float
    stock: int

    @classmethod
    def from_product(cls, product: Product) -> "ProductOut":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            stock=product.stock,
        )


class ProductResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: ProductOut


class ProductListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    total: int
    data: list[ProductOut]


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
