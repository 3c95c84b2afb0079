from datetime import UTC, datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, Index, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Category Tree ---

class Category(SQLModel, table=True):
    """One node of the category tree, stored as a flat row.

    ``level``, ``path`` and ``ancestors`` are derived from the ``parent_id``
    chain by the category store; callers never set them directly.
    """
    __tablename__ = "category"
    __table_args__ = (
        Index("ix_category_parent_sort", "parent_id", "sort_order"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(unique=True, index=True)
    parent_id: Optional[int] = Field(default=None, foreign_key="category.id")

    # Tree helpers (derived)
    level: int = Field(default=0)
    path: str = Field(default="", index=True)
    ancestors: list[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Display & status
    sort_order: Optional[int] = Field(default=None)
    is_active: bool = Field(default=True)

    # Optional visuals / SEO
    icon: Optional[str] = None
    image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    # Audit
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# --- Sequences ---

class Counter(SQLModel, table=True):
    """Atomic numeric sequence per key (e.g. 'USER:ADMIN' -> A00001, A00002...)."""
    __tablename__ = "counter"

    key: str = Field(primary_key=True)
    prefix: str = Field(default="U")
    padding: int = Field(default=5, ge=1, le=12)
    next_number: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# --- Users ---

class User(SQLModel, table=True):
    __tablename__ = "app_user"
    __table_args__ = (
        UniqueConstraint("human_id", name="uq_app_user_human_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    human_id: str = Field(index=True)  # e.g., "A00001"
    name: str
    email: str = Field(index=True, unique=True)
    phone: Optional[str] = None
    password_hash: str
    role: str = Field(default="employee", index=True)
    client_info: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    is_active: bool = Field(default=True)
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
