import re
from collections.abc import Callable
from typing import NamedTuple, Optional

from app.data_access.models import Category


ParentLookup = Callable[[int], Optional[Category]]

_SEPARATOR_RUN = re.compile(r"/+")


class TreeFields(NamedTuple):
    level: int
    path: str
    ancestors: list[int]


def compute_tree_fields(node: Category, parent_lookup: ParentLookup) -> TreeFields:
    """Derives level, materialized path and ancestor chain from the parent.

    The parent is read through ``parent_lookup`` (a session-bound getter), so
    within a unit of work the node sees the parent's state as of this
    transaction. A missing parent yields root-like fields: existence is the
    caller's check, this function only recomputes.
    """
    level = 0
    ancestors: list[int] = []
    path = f"/{node.slug}"

    if node.parent_id is not None:
        parent = parent_lookup(node.parent_id)
        if parent is not None:
            level = parent.level + 1
            ancestors = [*(parent.ancestors or []), parent.id]
            path = f"{parent.path}/{node.slug}"

    path = _SEPARATOR_RUN.sub("/", path)
    if len(path) > 1:
        path = path.rstrip("/")
    return TreeFields(level=level, path=path, ancestors=ancestors)


def apply_tree_fields(node: Category, fields: TreeFields) -> None:
    """Writes derived fields onto the row.

    ``ancestors`` is always assigned a new list so the JSON column is
    flagged dirty.
    """
    node.level = fields.level
    node.path = fields.path
    node.ancestors = list(fields.ancestors)
