"""Pydantic schemas for request bodies."""

from slakttrad.schemas.records import (
    LoginRequest,
    PersonCreate,
    PersonFields,
    PersonUpdate,
    RegisterRequest,
    RelationCreate,
    TreeInput,
    first_error_message,
    generated_place_label,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "TreeInput",
    "PersonFields",
    "PersonCreate",
    "PersonUpdate",
    "RelationCreate",
    "first_error_message",
    "generated_place_label",
]
