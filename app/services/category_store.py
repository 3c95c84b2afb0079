import logging
from typing import Any, Optional

from sqlalchemy import func, update
from sqlmodel import Session, col, select

from app.data_access.models import Category, utcnow
from app.services.category_tree import apply_tree_fields, compute_tree_fields
from app.services.slug import normalize_slug


logger = logging.getLogger(__name__)


def siblings_of(parent_id: Optional[int]) -> Any:
    """SQL condition selecting every row that shares ``parent_id``."""
    if parent_id is None:
        return col(Category.parent_id).is_(None)
    return col(Category.parent_id) == parent_id


class CategoryStore:
    """Persistence and derived-field hooks for Category rows.

    The two moments at which derived fields are (re)computed are explicit:
    ``prepare`` before a new row is inserted and ``reconcile`` after an
    in-place update has been applied. Both read the parent through the same
    session, so they observe the current transaction's view of the tree.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # --- Lookups ---

    def get(self, id: int) -> Optional[Category]:
        return self.session.get(Category, id)

    def get_by_slug(self, slug: str) -> Optional[Category]:
        statement = select(Category).where(Category.slug == slug)
        return self.session.exec(statement).first()

    # --- Derived-field hooks ---

    def prepare(self, node: Category, *, is_new: bool) -> Category:
        """Assigns slug, tree fields and (for new rows) the next sort order."""
        node.slug = normalize_slug(node.slug) if node.slug else normalize_slug(node.name)
        apply_tree_fields(node, compute_tree_fields(node, self.get))

        if is_new and node.sort_order is None:
            node.sort_order = self.get_next_sort_order(node.parent_id)
        return node

    def reconcile(self, node: Category) -> Category:
        """Recomputes slug and tree fields after an in-place update.

        This is a second write on the same row so the stored fields reflect
        the new parent/slug rather than the pre-update ones.
        """
        if node.slug:
            node.slug = normalize_slug(node.slug)
        apply_tree_fields(node, compute_tree_fields(node, self.get))
        node.updated_at = utcnow()

        self.session.add(node)
        self.session.flush()
        return node

    def cascade_descendants(self, old_path: str) -> int:
        """Re-derives tree fields for every row below ``old_path``.

        Rows are processed parents-first, so each child reads an already
        refreshed parent from the identity map.
        """
        descendants = self.list_descendants(old_path)
        now = utcnow()
        for child in descendants:
            apply_tree_fields(child, compute_tree_fields(child, self.get))
            child.updated_at = now
            self.session.add(child)

        if descendants:
            self.session.flush()
            logger.info(f"Recomputed tree fields for {len(descendants)} descendants of '{old_path}'.")
        return len(descendants)

    # --- Sibling helpers ---

    def get_next_sort_order(self, parent_id: Optional[int]) -> int:
        """Returns (max sort order among siblings, or 0 if none) + 1."""
        statement = select(func.max(Category.sort_order)).where(siblings_of(parent_id))
        current = self.session.exec(statement).one()
        return (current or 0) + 1

    def make_room_for_sort_order(
        self,
        parent_id: Optional[int],
        sort_order: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        """Shifts every sibling with ``sort_order >= requested`` up by one.

        Issued as a single UPDATE so it commits or rolls back together with
        the insert/update that needed the gap.
        """
        statement = (
            update(Category)
            .where(siblings_of(parent_id), col(Category.sort_order) >= sort_order)
            .values(sort_order=col(Category.sort_order) + 1, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        if exclude_id is not None:
            statement = statement.where(col(Category.id) != exclude_id)

        self.session.execute(statement)

    def is_name_taken(
        self,
        name: str,
        parent_id: Optional[int],
        exclude_id: Optional[int] = None,
    ) -> bool:
        """Case-insensitive name check restricted to siblings.

        Names are compared with ``str.casefold`` in Python, since SQLite's
        ``lower()`` only folds ASCII letters ("Électro" vs "électro").
        """
        statement = select(Category.name).where(siblings_of(parent_id))
        if exclude_id is not None:
            statement = statement.where(col(Category.id) != exclude_id)
        wanted = name.strip().casefold()
        return any(sibling.casefold() == wanted for sibling in self.session.exec(statement))

    def is_slug_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        statement = select(Category.id).where(Category.slug == slug)
        if exclude_id is not None:
            statement = statement.where(col(Category.id) != exclude_id)
        return self.session.exec(statement).first() is not None

    def has_children(self, id: int) -> bool:
        statement = select(Category.id).where(Category.parent_id == id).limit(1)
        return self.session.exec(statement).first() is not None

    def list_children(self, parent_id: Optional[int], only_active: bool = False) -> list[Category]:
        statement = select(Category).where(siblings_of(parent_id))
        if only_active:
            statement = statement.where(col(Category.is_active))
        statement = statement.order_by(col(Category.sort_order), col(Category.id))
        return list(self.session.exec(statement).all())

    def list_descendants(self, path: str) -> list[Category]:
        statement = (
            select(Category)
            .where(col(Category.path).startswith(f"{path}/", autoescape=True))
            .order_by(col(Category.level), col(Category.id))
        )
        return list(self.session.exec(statement).all())
