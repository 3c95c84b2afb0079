from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

# Security
from app.api.auth import authenticate

# Layer 4: Data Access (Session)
from app.data_access.database import get_session

# Layer 3: Domain Entities (Pydantic models)
from app.domain.category import (
    CategoryCreate,
    CategoryDomain,
    CategoryListQuery,
    CategoryMove,
    CategoryReorder,
    CategorySort,
    CategoryTreeNode,
    CategoryUpdate,
)
from app.domain.common import ApiResponse
from app.domain.user import UserDomain, UserLogin, UserRegister, UserRole

# Layer 2: Services
from app.services.category_service import CategoryService
from app.services.user_service import UserService


router = APIRouter(prefix="/v1")

SessionDep = Annotated[Session, Depends(get_session)]
AdminDep = Annotated[str, Depends(authenticate)]


# --- CATEGORY TREE ---
@router.post("/categories", tags=["Categories"], status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    session: SessionDep,
    username: AdminDep
) -> ApiResponse[CategoryDomain]:
    """Creates a category; tree fields and (if omitted) sort order are derived."""
    service = CategoryService(session)
    created = service.create_category(data, created_by=username)
    return ApiResponse(status_code=status.HTTP_201_CREATED, message="Category created successfully", data=created)


@router.get("/categories", tags=["Categories"])
def list_categories(
    session: SessionDep,
    parent_id: Annotated[Optional[int], Query(alias="parentId", description="List children of this category; roots when omitted")] = None,
    q: Annotated[Optional[str], Query(description="Case-insensitive name search")] = None,
    is_active: Annotated[Optional[bool], Query(alias="isActive")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1)] = 20,
    sort: CategorySort = CategorySort.SORT_ORDER,
) -> ApiResponse[list[CategoryDomain]]:
    """Flat, paginated listing of one level of the tree."""
    service = CategoryService(session)
    result = service.list_categories(CategoryListQuery(
        parent_id=parent_id, search=q, is_active=is_active, page=page, limit=limit, sort=sort,
    ))
    return ApiResponse(message="Categories fetched successfully", data=result.items, meta=result.meta)


@router.get("/categories/tree", tags=["Categories"])
def get_category_tree(
    session: SessionDep,
    only_active: Annotated[bool, Query(alias="onlyActive")] = True,
) -> ApiResponse[list[CategoryTreeNode]]:
    """Whole category forest with nested children."""
    service = CategoryService(session)
    return ApiResponse(message="Category tree fetched successfully", data=service.get_category_tree(only_active))


@router.get("/categories/{id_or_slug}", tags=["Categories"])
def get_category(id_or_slug: str, session: SessionDep) -> ApiResponse[CategoryDomain]:
    """Fetches a category by numeric ID or by slug."""
    service = CategoryService(session)
    return ApiResponse(message="Category fetched successfully", data=service.get_category(id_or_slug))


@router.patch("/categories/{id}", tags=["Categories"])
def update_category(
    id: int,
    data: CategoryUpdate,
    session: SessionDep,
    username: AdminDep
) -> ApiResponse[CategoryDomain]:
    """Renames, moves, reorders or toggles a category."""
    service = CategoryService(session)
    return ApiResponse(message="Category updated successfully", data=service.update_category(id, data))


@router.patch("/categories/{id}/move", tags=["Categories"])
def move_category(
    id: int,
    data: CategoryMove,
    session: SessionDep,
    username: AdminDep
) -> ApiResponse[CategoryDomain]:
    service = CategoryService(session)
    return ApiResponse(message="Category moved successfully", data=service.move_category(id, data.parent_id))


@router.patch("/categories/{id}/reorder", tags=["Categories"])
def reorder_category(
    id: int,
    data: CategoryReorder,
    session: SessionDep,
    username: AdminDep
) -> ApiResponse[CategoryDomain]:
    service = CategoryService(session)
    return ApiResponse(message="Category reordered successfully", data=service.reorder_category(id, data.sort_order))


@router.delete("/categories/{id}", tags=["Categories"])
def delete_category(
    id: int,
    session: SessionDep,
    username: AdminDep,
    hard: bool = False
) -> ApiResponse[None]:
    """Soft delete by default; ``?hard=true`` removes a childless category."""
    service = CategoryService(session)
    service.delete_category(id, hard=hard)
    return ApiResponse(message="Category deleted successfully", data=None)


# --- USERS ---
@router.post("/users/register", tags=["Users"], status_code=status.HTTP_201_CREATED)
def register_user(data: UserRegister, session: SessionDep) -> ApiResponse[UserDomain]:
    """Registers a user and mints a role-prefixed human ID (A00001 / E00001)."""
    service = UserService(session)
    return ApiResponse(
        status_code=status.HTTP_201_CREATED,
        message="User registered successfully",
        data=service.register_user(data),
    )


@router.post("/users/login", tags=["Users"])
def login_user(data: UserLogin, session: SessionDep) -> ApiResponse[UserDomain]:
    """Checks email and password; token issuance is handled by the auth gateway."""
    service = UserService(session)
    return ApiResponse(message="User logged in successfully", data=service.login(data))


@router.get("/users", tags=["Users"])
def list_users(
    session: SessionDep,
    username: AdminDep,
    search_term: Annotated[Optional[str], Query(alias="searchTerm")] = None,
    role: Optional[UserRole] = None,
    is_active: Annotated[Optional[bool], Query(alias="isActive")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    sort: Annotated[Optional[str], Query(description="Comma list, e.g. 'name,-createdAt'")] = None,
) -> ApiResponse[list[UserDomain]]:
    service = UserService(session)
    query: dict[str, Any] = {
        "searchTerm": search_term,
        "role": role.value if role else None,
        "isActive": is_active,
        "page": page,
        "limit": limit,
        "sort": sort,
    }
    result = service.list_users(query)
    return ApiResponse(message="Users fetched successfully", data=result.items, meta=result.meta)


@router.get("/users/{id}", tags=["Users"])
def get_user(id: int, session: SessionDep, username: AdminDep) -> ApiResponse[UserDomain]:
    service = UserService(session)
    return ApiResponse(message="User fetched successfully", data=service.get_user(id))
