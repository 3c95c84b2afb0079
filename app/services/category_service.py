import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from fastapi import status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from app.core.config import settings
from app.core.errors import (
    AppError,
    BadRequestError,
    ConflictError,
    CycleDetectedError,
    HasChildrenError,
    NameTakenError,
    NotFoundError,
    ParentNotFoundError,
    SelfParentError,
    SlugTakenError,
)

# Layer 4: Data Access
from app.data_access.database import transaction
from app.data_access.models import Category, utcnow

# Layer 3: Domain Entities
from app.domain.category import (
    CategoryCreate,
    CategoryDomain,
    CategoryListQuery,
    CategoryTreeNode,
    CategoryUpdate,
)
from app.domain.common import Page

# Layer 2: Supporting Services
from app.services.category_store import CategoryStore, siblings_of
from app.services.query_builder import QueryBuilder
from app.services.slug import normalize_slug


logger = logging.getLogger(__name__)

# Display fields a client may explicitly clear with null
CLEARABLE_FIELDS = frozenset({"icon", "image", "meta_title", "meta_description"})


class CategoryService:
    """
    Service layer for the category tree.

    Every mutation runs as one unit of work: validation reads, sibling
    sort-order shifts and the primary write commit together or not at all.
    Derived fields (slug, level, path, ancestors) are delegated to
    ``CategoryStore`` and are never taken from the caller.
    """

    def __init__(self, session: Session) -> None:
        """
        Initializes the CategoryService with a database session.

        Args:
            session (Session): The SQLModel/SQLAlchemy session for database operations.
        """
        self.session = session
        self.store = CategoryStore(session)

    # --- 1. HELPERS ---

    def _map_to_domain(self, db_category: Category) -> CategoryDomain:
        return CategoryDomain.model_validate(db_category)

    @contextmanager
    def _unit_of_work(self, action: str) -> Iterator[None]:
        """Wraps ``transaction`` and translates database failures into AppErrors."""
        try:
            with transaction(self.session):
                yield
        except IntegrityError as e:
            logger.error(f"Integrity error during category {action}: {e.orig!s}")
            raise ConflictError(f"Category {action} conflicts with an existing record.")
        except SQLAlchemyError as e:
            logger.error(f"Failed category {action}: {e!s}")
            raise AppError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                f"Internal database error during category {action}."
            )

    def _get_category_or_404(self, category_id: int) -> Category:
        """
        Internal helper to retrieve a category or raise a 404 error.

        Args:
            category_id (int): The primary key ID of the category.

        Returns:
            Category: The retrieved database row.

        Raises:
            NotFoundError: If the category does not exist.
        """
        category = self.store.get(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def _ensure_parent_ok(self, parent_id: Optional[int], self_id: Optional[int] = None) -> None:
        """
        Validates a (new) parent reference.

        Args:
            parent_id (Optional[int]): The requested parent, ``None`` for root.
            self_id (Optional[int]): The node being moved, when updating.

        Raises:
            SelfParentError: If the node would become its own parent.
            ParentNotFoundError: If the parent does not exist.
            CycleDetectedError: If the parent lies inside the node's own subtree.
        """
        if parent_id is None:
            return
        if self_id is not None and parent_id == self_id:
            raise SelfParentError()

        parent = self.store.get(parent_id)
        if parent is None:
            raise ParentNotFoundError()
        if self_id is not None and self_id in (parent.ancestors or []):
            raise CycleDetectedError()

    def _resolve_slug(self, raw: str, exclude_id: Optional[int] = None) -> str:
        slug = normalize_slug(raw)
        if not slug:
            raise BadRequestError("Category slug cannot be empty.")
        if self.store.is_slug_taken(slug, exclude_id=exclude_id):
            raise SlugTakenError(slug)
        return slug

    # --- 2. MUTATIONS ---

    def create_category(self, category_in: CategoryCreate, created_by: Optional[str] = None) -> CategoryDomain:
        """
        Validates the parent reference and persists a new Category.

        When an explicit ``sort_order`` is given, every sibling at or after
        that position is shifted up by one first. Otherwise the node is placed
        after its last sibling.

        Args:
            category_in (CategoryCreate): The validated payload.
            created_by (Optional[str]): Username of the admin performing the call.

        Returns:
            CategoryDomain: The created node with its derived tree fields.

        Raises:
            ParentNotFoundError: 400 if ``parent_id`` does not exist.
            NameTakenError: 400 if a sibling already uses the name.
            SlugTakenError: 400 if the resolved slug is already in use.
        """
        with self._unit_of_work("creation"):
            parent_id = category_in.parent_id
            self._ensure_parent_ok(parent_id)

            if self.store.is_name_taken(category_in.name, parent_id):
                raise NameTakenError(category_in.name)
            slug = self._resolve_slug(category_in.slug or category_in.name)

            if category_in.sort_order is not None:
                self.store.make_room_for_sort_order(parent_id, category_in.sort_order)

            node = Category(
                **category_in.model_dump(exclude={"slug"}),
                slug=slug,
                created_by=created_by,
            )
            self.store.prepare(node, is_new=True)
            self.session.add(node)
            self.session.flush()

        self.session.refresh(node)
        logger.info(f"Category {node.id} created at '{node.path}'.")
        return self._map_to_domain(node)

    def update_category(self, category_id: int, category_in: CategoryUpdate) -> CategoryDomain:
        """
        Renames, moves, reorders or toggles a Category.

        A ``parent_id`` present in the payload (even as null) is a move.
        After the update the node's derived fields are reconciled and, if its
        path changed, every descendant is recomputed in the same transaction.

        Args:
            category_id (int): The node to update.
            category_in (CategoryUpdate): Partial payload.

        Returns:
            CategoryDomain: The updated node.

        Raises:
            NotFoundError: 404 if the node does not exist.
            SelfParentError, ParentNotFoundError, CycleDetectedError: 400 on an invalid move.
            NameTakenError, SlugTakenError: 400 on a uniqueness clash.
        """
        with self._unit_of_work("update"):
            node = self._get_category_or_404(category_id)
            fields_set = category_in.model_fields_set

            parent_id = category_in.parent_id if "parent_id" in fields_set else node.parent_id
            self._ensure_parent_ok(parent_id, self_id=node.id)

            name = category_in.name if category_in.name is not None else node.name
            renamed_or_moved = name.lower() != node.name.lower() or parent_id != node.parent_id
            if renamed_or_moved and self.store.is_name_taken(name, parent_id, exclude_id=node.id):
                raise NameTakenError(name)

            slug = None
            if category_in.slug is not None:
                slug = self._resolve_slug(category_in.slug, exclude_id=node.id)

            # Reorder within the (new) parent
            if category_in.sort_order is not None:
                self.store.make_room_for_sort_order(parent_id, category_in.sort_order, exclude_id=node.id)
                node.sort_order = category_in.sort_order

            update_data = {
                key: value
                for key, value in category_in.model_dump(
                    exclude_unset=True, exclude={"parent_id", "sort_order", "slug"}
                ).items()
                if value is not None or key in CLEARABLE_FIELDS
            }
            node.sqlmodel_update(update_data)
            node.parent_id = parent_id
            if slug is not None:
                node.slug = slug

            old_path = node.path
            self.session.add(node)
            self.session.flush()

            self.store.reconcile(node)
            if node.path != old_path:
                self.store.cascade_descendants(old_path)

        self.session.refresh(node)
        logger.info(f"Category {category_id} updated (path '{node.path}').")
        return self._map_to_domain(node)

    def move_category(self, category_id: int, new_parent_id: Optional[int]) -> CategoryDomain:
        """Moves a node under ``new_parent_id`` (``None`` makes it a root)."""
        return self.update_category(category_id, CategoryUpdate(parent_id=new_parent_id))

    def reorder_category(self, category_id: int, sort_order: int) -> CategoryDomain:
        """Places a node at ``sort_order`` among its current siblings."""
        return self.update_category(category_id, CategoryUpdate(sort_order=sort_order))

    def delete_category(self, category_id: int, hard: bool = False) -> Optional[CategoryDomain]:
        """
        Soft-deletes (default) or hard-deletes a Category.

        Args:
            category_id (int): The node to delete.
            hard (bool): Physically remove the row instead of deactivating it.

        Returns:
            Optional[CategoryDomain]: The deactivated node, or None after a hard delete.

        Raises:
            NotFoundError: 404 if the node does not exist.
            HasChildrenError: 400 on a hard delete of a node with children.
        """
        if not hard:
            with self._unit_of_work("deactivation"):
                node = self._get_category_or_404(category_id)
                node.is_active = False
                node.updated_at = utcnow()
                self.session.add(node)

            self.session.refresh(node)
            logger.info(f"Category {category_id} deactivated (Soft-Deleted).")
            return self._map_to_domain(node)

        with self._unit_of_work("deletion"):
            node = self._get_category_or_404(category_id)
            if self.store.has_children(category_id):
                raise HasChildrenError()
            self.session.delete(node)

        logger.info(f"Category {category_id} permanently deleted.")
        return None

    # --- 3. READS ---

    def get_category_by_id(self, category_id: int) -> CategoryDomain:
        return self._map_to_domain(self._get_category_or_404(category_id))

    def get_category_by_slug(self, slug: str) -> CategoryDomain:
        category = self.store.get_by_slug(slug)
        if category is None:
            raise NotFoundError("Category not found")
        return self._map_to_domain(category)

    def get_category(self, id_or_slug: str) -> CategoryDomain:
        """Resolves ASCII all-digit identifiers as IDs, anything else as a slug."""
        if id_or_slug.isascii() and id_or_slug.isdecimal():
            return self.get_category_by_id(int(id_or_slug))
        return self.get_category_by_slug(id_or_slug)

    def list_categories(self, query: CategoryListQuery) -> Page[CategoryDomain]:
        """
        Lists one level of the tree with search, status filter, sorting and paging.

        Args:
            query (CategoryListQuery): Scope (``parent_id``, roots by default) and options.

        Returns:
            Page[CategoryDomain]: The requested page plus pagination metadata.
        """
        builder = QueryBuilder(self.session, Category, {
            "searchTerm": query.search,
            "isActive": query.is_active,
            "sort": query.sort.value,
            "page": query.page,
            "limit": query.limit,
        })
        builder = (
            builder.where(siblings_of(query.parent_id))
            .search(["name"])
            .filter()
            .sort(default="sortOrder")
            .paginate(default_limit=settings.DEFAULT_PAGE_LIMIT, max_limit=settings.CATEGORY_MAX_PAGE_LIMIT)
        )
        items = [self._map_to_domain(c) for c in builder.all()]
        return Page[CategoryDomain](items=items, meta=builder.count_total())

    def get_category_tree(self, only_active: bool = True) -> list[CategoryTreeNode]:
        """
        Builds the whole forest in memory from flat rows.

        Children are grouped under their parent by ``parent_id``. A row whose
        parent is not in the loaded set (e.g. an inactive parent) is promoted
        to a root rather than dropped.

        Args:
            only_active (bool): Load active categories only. Defaults to True.

        Returns:
            list[CategoryTreeNode]: Root nodes with nested ``children``.
        """
        statement = select(Category)
        if only_active:
            statement = statement.where(col(Category.is_active))
        statement = statement.order_by(col(Category.level), col(Category.sort_order), col(Category.id))
        rows = self.session.exec(statement).all()

        by_id = {row.id: CategoryTreeNode.model_validate(row) for row in rows}
        roots: list[CategoryTreeNode] = []
        for row in rows:
            node = by_id[row.id]
            parent = by_id.get(row.parent_id) if row.parent_id is not None else None
            if parent is not None:
                parent.children.append(node)
            else:
                roots.append(node)
        return roots
