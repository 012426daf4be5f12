"""Name generation for relationships, finders and classes."""

import re
from typing import List

_SPLIT_RE = re.compile(r"[_\-\s]+")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_ES_SUFFIXES = ("s", "sh", "ch", "x", "z")
_VOWELS = set("aeiou")


def _words(name: str) -> List[str]:
    return [w for w in _SPLIT_RE.split(name.strip()) if w]


def _upper_first(word: str) -> str:
    return word[:1].upper() + word[1:]


def _lower_first(word: str) -> str:
    return word[:1].lower() + word[1:]


def to_camel_case(name: str) -> str:
    """Convert ``user_profile`` / ``user-profile`` / ``user profile`` to ``userProfile``.

    Existing inner capitals are kept, so ``authorId`` stays ``authorId``.
    """
    words = _words(name)
    if not words:
        return ""
    first = words[0]
    if first.isupper():
        first = first.lower()
    return _lower_first(first) + "".join(_upper_first(w.lower() if w.isupper() else w) for w in words[1:])


def to_pascal_case(name: str) -> str:
    return _upper_first(to_camel_case(name))


def to_snake_case(name: str) -> str:
    """Convert ``createdAt`` or ``Created At`` to ``created_at``."""
    parts = []
    for word in _words(name):
        parts.extend(_CAMEL_BOUNDARY_RE.split(word))
    return "_".join(p.lower() for p in parts if p)


def pluralize(word: str) -> str:
    """English pluralization covering the common suffix rules.

    ``category`` -> ``categories``, ``box`` -> ``boxes``, ``post`` -> ``posts``.
    """
    if not word:
        return word
    lower = word.lower()
    if lower.endswith("y") and len(word) > 1 and lower[-2] not in _VOWELS:
        return word[:-1] + "ies"
    if lower.endswith(_ES_SUFFIXES):
        return word + "es"
    return word + "s"


def strip_id_suffix(column: str) -> str:
    """Remove a trailing ``_id`` or ``Id`` from a foreign-key column name."""
    if column.lower().endswith("_id") and len(column) > 3:
        return column[:-3]
    if column.endswith("Id") and len(column) > 2:
        return column[:-2]
    return column


def relationship_name(column: str, referenced_table: str) -> str:
    """Forward relationship name for a foreign-key column.

    ``user_id`` -> ``user``, ``authorId`` -> ``author``. A bare ``id`` column
    falls back to the referenced table name.
    """
    base = strip_id_suffix(column)
    if base.lower() == "id" or not base:
        base = referenced_table
    return to_camel_case(base)


def reverse_relationship_name(table: str) -> str:
    """Reverse relationship name, the pluralized camel case of the owning table.

    Table names that already read as plural (``posts``) are kept as is.
    """
    name = to_camel_case(table)
    lower = name.lower()
    if lower.endswith("s") and not lower.endswith("ss"):
        return name
    return pluralize(name)


def finder_name(column: str, many: bool = False) -> str:
    """Python method name for a column finder, ``find_by_email`` / ``find_many_by_email``."""
    prefix = "find_many_by_" if many else "find_by_"
    return prefix + to_snake_case(column)
