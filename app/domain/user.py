from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from app.domain.common import CamelModel


class UserRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class ClientInfo(CamelModel):
    """Device details captured at registration and login."""
    device: Literal["pc", "mobile"]
    browser: str = Field(..., min_length=1)
    ip_address: str = Field(..., min_length=3)
    pc_name: Optional[str] = None
    os: Optional[str] = None
    user_agent: Optional[str] = None


class UserRegister(CamelModel):
    """Registration payload.

    Attributes:
        name (str): Full name, at least 2 characters.
        email (EmailStr): Login email; stored lowercased.
        password (str): Plain password, hashed before persistence.
        role (UserRole): Determines the human ID prefix (A/E).
    """
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: Optional[str] = None
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.EMPLOYEE
    client_info: ClientInfo

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Rahim Uddin",
                "email": "rahim@example.com",
                "password": "secret123",
                "role": "admin",
                "clientInfo": {"device": "pc", "browser": "Firefox", "ipAddress": "127.0.0.1"},
            }
        }
    }


class UserLogin(CamelModel):
    """Credentials check; ``client_info`` replaces the stored device details when sent."""
    email: EmailStr
    password: str = Field(..., min_length=1)
    client_info: Optional[ClientInfo] = None


class UserDomain(CamelModel):
    """Public representation of a user. Never carries the password hash."""
    id: int
    human_id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    client_info: Optional[ClientInfo] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
