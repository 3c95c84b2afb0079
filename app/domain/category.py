from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from app.domain.common import CamelModel


class CategorySort(str, Enum):
    NAME = "name"
    NAME_DESC = "-name"
    SORT_ORDER = "sortOrder"
    SORT_ORDER_DESC = "-sortOrder"


class CategoryCreate(CamelModel):
    """
    Admin payload for creating a Category.

    Attributes:
        name (str): Display label, unique among siblings (case-insensitive).
        slug (Optional[str]): Explicit URL key; derived from ``name`` when omitted.
        parent_id (Optional[int]): Parent category, ``None`` for a root.
        sort_order (Optional[int]): Position among siblings; auto-assigned when omitted.
    """

    name: str = Field(..., min_length=1, max_length=120, description="Display label of the category")
    slug: Optional[str] = Field(None, min_length=1, max_length=160, description="URL-safe override")
    parent_id: Optional[int] = Field(None, description="Parent category ID, null for root")
    sort_order: Optional[int] = Field(None, ge=0, description="Position among siblings")
    is_active: bool = True

    icon: Optional[str] = None
    image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Category name cannot be empty or just whitespace.")
        return stripped

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Toasters",
                "parentId": 1,
                "icon": "toaster",
            }
        }
    }


class CategoryUpdate(CamelModel):
    """Partial update: rename, move, reorder, toggle or edit display fields.

    ``parent_id`` sent as ``null`` moves the node to the root level; leaving
    it out keeps the current parent. Use ``model_fields_set`` to tell the two
    apart.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=120)
    slug: Optional[str] = Field(None, min_length=1, max_length=160)
    parent_id: Optional[int] = None
    sort_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    icon: Optional[str] = None
    image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        stripped = v.strip()
        if not stripped:
            raise ValueError("Category name cannot be empty or just whitespace.")
        return stripped

    @model_validator(mode="after")
    def require_any_field(self) -> "CategoryUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class CategoryMove(CamelModel):
    parent_id: Optional[int] = Field(..., description="New parent ID, null for root")


class CategoryReorder(CamelModel):
    sort_order: int = Field(..., ge=0)


class CategoryDomain(CamelModel):
    """Read model of a persisted Category, including its derived tree fields."""

    id: int
    name: str
    slug: str
    parent_id: Optional[int] = None
    level: int
    path: str
    ancestors: list[int] = Field(default_factory=list)
    sort_order: Optional[int] = None
    is_active: bool

    icon: Optional[str] = None
    image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryTreeNode(CategoryDomain):
    children: list["CategoryTreeNode"] = Field(default_factory=list)


class CategoryListQuery(CamelModel):
    """Listing options for one level of the tree (defaults to the roots)."""

    parent_id: Optional[int] = None
    search: Optional[str] = None
    is_active: Optional[bool] = None
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1)
    sort: CategorySort = CategorySort.SORT_ORDER


CategoryTreeNode.model_rebuild()
