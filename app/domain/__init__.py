# app/domain/__init__.py

# 1. Wire envelopes
from .common import ApiResponse, ErrorResponse, Page, PaginationMeta

# 2. The Category Tree
from .category import (
    CategoryCreate,
    CategoryDomain,
    CategoryListQuery,
    CategoryMove,
    CategoryReorder,
    CategorySort,
    CategoryTreeNode,
    CategoryUpdate,
)

# 3. Users
from .user import ClientInfo, UserDomain, UserLogin, UserRegister, UserRole


__all__ = [
    "ApiResponse",
    "CategoryCreate",
    "CategoryDomain",
    "CategoryListQuery",
    "CategoryMove",
    "CategoryReorder",
    "CategorySort",
    "CategoryTreeNode",
    "CategoryUpdate",
    "ClientInfo",
    "ErrorResponse",
    "Page",
    "PaginationMeta",
    "UserDomain",
    "UserLogin",
    "UserRegister",
    "UserRole",
]
