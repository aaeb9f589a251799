"""Storage module for the relational store."""

from slakttrad.storage.sqlite import (
    FamilyTreeDatabase,
    Person,
    Relation,
    Tree,
    User,
)

__all__ = [
    "FamilyTreeDatabase",
    "User",
    "Tree",
    "Person",
    "Relation",
]
