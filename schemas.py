"""
Database Schemas

Pydantic models for the two MongoDB collections this backend reads and
writes, plus the request/response shapes of the API.

- users    -> UserRecord (created by an administrator, read-only here)
- products -> ProductRecord (created and updated by the product screen)
"""

import re
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from errors import TRANSIENT_MESSAGE

EMAIL_PATTERN = re.compile(r"^[\w.-]+@([\w-]+\.)+[\w-]{2,}$")
MIN_PASSWORD_LENGTH = 4
DEFAULT_USER_NAME = "User"
REJECTED_MESSAGE = "Invalid email or password"


# Collection: users
class UserRecord(BaseModel):
    email: str = Field(..., description="Lookup key, matched exactly")
    password: str = Field("", description="Stored credential (plain text)")
    name: str = Field(DEFAULT_USER_NAME, description="Display name")

    @field_validator("password", mode="before")
    @classmethod
    def _missing_password(cls, v):
        return "" if v is None else v

    @field_validator("name", mode="before")
    @classmethod
    def _missing_name(cls, v):
        return DEFAULT_USER_NAME if v is None else v


# Collection: products
class ProductRecord(BaseModel):
    id: str = Field(..., description="Document key")
    name: str = Field(..., description="Normalized product name")
    quantity: Optional[int] = Field(None, description="Units in stock")
    price: Optional[float] = Field(None, description="Unit price")


class SessionContext(BaseModel):
    """Editing state carried between a search and the next save."""

    last_found_id: Optional[str] = None
    last_found: Optional[ProductRecord] = None

    def remember(self, record: ProductRecord) -> None:
        self.last_found_id = record.id
        self.last_found = record

    def clear(self) -> None:
        self.last_found_id = None
        self.last_found = None


# ---------- Auth ----------

class LoginIn(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter your email")
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email")
        return v

    @field_validator("password")
    @classmethod
    def _check_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Please enter your password")
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class AuthResult(BaseModel):
    status: Literal["authenticated", "rejected", "failed"]
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status == "authenticated"

    @classmethod
    def authenticated(cls, name: str, email: str) -> "AuthResult":
        return cls(status="authenticated", name=name, email=email)

    @classmethod
    def rejected(cls) -> "AuthResult":
        return cls(status="rejected", message=REJECTED_MESSAGE)

    @classmethod
    def failed(cls) -> "AuthResult":
        return cls(status="failed", message=TRANSIENT_MESSAGE)


# ---------- Products ----------

class ProductSaveIn(BaseModel):
    name: str
    quantity: int = Field(..., ge=0)
    price: float = Field(..., ge=0)
    existing_id: Optional[str] = Field(None, description="Id returned by the last search")

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Enter a product name")
        return v

    @field_validator("price")
    @classmethod
    def _check_price_precision(cls, v: float) -> float:
        if round(v, 2) != v:
            raise ValueError("Price can have at most two decimal places")
        return v


class ProductSearchOut(BaseModel):
    found: bool
    product: Optional[ProductRecord] = None
    message: str


class ProductSaveOut(BaseModel):
    product: ProductRecord
    message: str
