import re


# ASCII word characters only; accented letters become separators
_NON_WORD_RUN = re.compile(r"[^\w]+", re.ASCII)


def normalize_slug(value: str) -> str:
    """Converts a display name into a URL-safe, lowercase, hyphenated key.

    Every run of characters outside ``[A-Za-z0-9_]`` becomes a single hyphen
    and hyphens at either end are stripped, so "  Home & Garden! " ->
    "home-garden" and "Crème Brûlée" -> "cr-me-br-l-e".
    Idempotent: a normalized slug maps to itself.
    """
    slug = _NON_WORD_RUN.sub("-", value.lower().strip())
    return slug.strip("-")
