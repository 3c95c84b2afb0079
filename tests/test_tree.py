import pytest

from app.data_access.models import Category
from app.services.category_tree import apply_tree_fields, compute_tree_fields
from app.services.slug import normalize_slug


# --- 1. Slug Normalizer ---

@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Electronics", "electronics"),
        ("  Home & Garden! ", "home-garden"),
        ("Kids' Toys -- 2024", "kids-toys-2024"),
        ("---Already---hyphenated---", "already-hyphenated"),
        ("snake_case_name", "snake_case_name"),
        ("", ""),
        ("!!!", ""),
        ("Crème Brûlée", "cr-me-br-l-e"),
        ("Électro ²", "lectro"),
    ],
)
def test_normalize_slug(raw: str, expected: str) -> None:
    assert normalize_slug(raw) == expected


def test_normalize_slug_is_idempotent() -> None:
    assert normalize_slug("electronics") == "electronics"
    once = normalize_slug("Small Kitchen Appliances")
    assert normalize_slug(once) == once


# --- 2. Tree Field Computer ---

def _lookup(*nodes: Category):
    by_id = {n.id: n for n in nodes}
    return by_id.get


def test_root_fields() -> None:
    node = Category(id=1, name="Electronics", slug="electronics")
    fields = compute_tree_fields(node, _lookup())
    assert fields.level == 0
    assert fields.path == "/electronics"
    assert fields.ancestors == []


def test_child_fields_extend_parent() -> None:
    root = Category(id=1, name="Electronics", slug="electronics", level=0, path="/electronics", ancestors=[])
    mid = Category(id=2, name="Kitchen", slug="kitchen", parent_id=1, level=1, path="/electronics/kitchen", ancestors=[1])
    leaf = Category(id=3, name="Toasters", slug="toasters", parent_id=2)

    fields = compute_tree_fields(leaf, _lookup(root, mid))
    assert fields.level == 2
    assert fields.path == "/electronics/kitchen/toasters"
    assert fields.ancestors == [1, 2]


def test_missing_parent_falls_back_to_root() -> None:
    orphan = Category(id=5, name="Orphan", slug="orphan", parent_id=99)
    fields = compute_tree_fields(orphan, _lookup())
    assert fields == (0, "/orphan", [])


def test_path_separators_are_collapsed() -> None:
    parent = Category(id=1, name="Odd", slug="odd", level=0, path="/odd/", ancestors=[])
    child = Category(id=2, name="Child", slug="child", parent_id=1)
    fields = compute_tree_fields(child, _lookup(parent))
    assert fields.path == "/odd/child"
    assert "//" not in fields.path


def test_apply_tree_fields_assigns_new_list() -> None:
    parent = Category(id=1, name="Root", slug="root", level=0, path="/root", ancestors=[])
    child = Category(id=2, name="Child", slug="child", parent_id=1)
    fields = compute_tree_fields(child, _lookup(parent))

    apply_tree_fields(child, fields)
    assert child.level == 1
    assert child.path == "/root/child"
    assert child.ancestors == [1]
    assert child.ancestors is not fields.ancestors
