"""Relation-type catalog.

Relations are stored with one of five fixed keys. Free-text labels coming
from forms or CSV files are normalized against the keys and their aliases;
anything unrecognized becomes ``annan``.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RelationType:
    """A catalog entry."""

    key: str
    label: str
    color: str
    aliases: tuple[str, ...]


OTHER = "annan"

RELATION_CATALOG: tuple[RelationType, ...] = (
    RelationType(
        key="förälder/barn",
        label="Förälder/Barn",
        color="#2563eb",
        aliases=("förälder", "barn", "parent", "child"),
    ),
    RelationType(
        key="partner",
        label="Partner",
        color="#db2777",
        aliases=("partner", "make", "maka", "man", "fru", "sambo", "gift", "spouse"),
    ),
    RelationType(
        key="syskon",
        label="Syskon",
        color="#16a34a",
        aliases=("syskon", "bror", "syster", "sibling", "brother", "sister"),
    ),
    RelationType(
        key="kusin",
        label="Kusin",
        color="#f59e0b",
        aliases=("kusin", "cousin"),
    ),
    RelationType(
        key=OTHER,
        label="Annan",
        color="#6b7280",
        aliases=("annan", "övrig", "other"),
    ),
)

RELATION_KEYS: tuple[str, ...] = tuple(item.key for item in RELATION_CATALOG)

_BY_KEY = {item.key: item for item in RELATION_CATALOG}
_LOOKUP: dict[str, str] = {}
for _item in RELATION_CATALOG:
    _LOOKUP[_item.key] = _item.key
    for _alias in _item.aliases:
        _LOOKUP.setdefault(_alias.lower(), _item.key)


def normalize_relation_type(raw: str | None) -> str:
    """Map a raw relation label onto a catalog key.

    Args:
        raw: Key, alias or display label in any case; may be blank

    Returns:
        One of RELATION_KEYS (``annan`` for blank or unknown input)
    """
    text = (raw or "").strip().lower()
    if not text:
        return OTHER
    return _LOOKUP.get(text, OTHER)


def get_relation_type(raw: str | None) -> RelationType:
    """Get the catalog entry for a raw relation label."""
    return _BY_KEY[normalize_relation_type(raw)]


def relation_label(raw: str | None) -> str:
    return get_relation_type(raw).label


def relation_color(raw: str | None) -> str:
    return get_relation_type(raw).color
