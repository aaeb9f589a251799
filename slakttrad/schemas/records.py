"""Pydantic schemas for incoming tree, person and relation data.

All messages are user-facing and in Swedish. Fields that need a specific
message are parsed in ``mode="before"`` validators so that pydantic never
produces its own English type errors for them.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from slakttrad.relation_types import normalize_relation_type

GENDERS = ("man", "kvinna")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

# SQLite INTEGER range
INTEGER_MIN = -(2**63)
INTEGER_MAX = 2**63 - 1
YEAR_MIN = -9999
YEAR_MAX = 9999


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_int(value: Any, message: str) -> int | None:
    """Parse an optional integer, rejecting fractions, booleans and text.

    Values outside the SQLite INTEGER range are rejected as well.

    Raises:
        ValueError: With ``message`` if the value is not an integer
    """
    number = _integer(value, message)
    if number is not None and not INTEGER_MIN <= number <= INTEGER_MAX:
        raise ValueError(message)
    return number


def parse_year(value: Any, message: str) -> int | None:
    """Parse an optional year between YEAR_MIN and YEAR_MAX."""
    year = _integer(value, message)
    if year is not None and not YEAR_MIN <= year <= YEAR_MAX:
        raise ValueError(message)
    return year


def _integer(value: Any, message: str) -> int | None:
    if _blank(value):
        return None
    if isinstance(value, bool):
        raise ValueError(message)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(message)
    text = str(value).strip()
    if INTEGER_PATTERN.match(text):
        return int(text)
    raise ValueError(message)


def generated_place_label(lat: float, lng: float) -> str:
    """Label used for a position that was saved without a place name."""
    return f"{lat:.6f}, {lng:.6f}"


def parse_float(value: Any, message: str) -> float | None:
    """Parse an optional decimal number. A decimal comma is accepted.

    Raises:
        ValueError: With ``message`` if the value is not a finite number
    """
    if _blank(value):
        return None
    if isinstance(value, bool):
        raise ValueError(message)
    try:
        number = float(str(value).strip().replace(",", "."))
    except ValueError:
        raise ValueError(message) from None
    if number != number or number in (float("inf"), float("-inf")):
        raise ValueError(message)
    return number


def normalize_gender(value: Any) -> str | None:
    """Lowercase a gender value; anything outside GENDERS becomes None."""
    if _blank(value):
        return None
    text = str(value).strip().lower()
    return text if text in GENDERS else None


def first_error_message(exc: ValidationError) -> str:
    """Get the message of the first error in a pydantic ValidationError."""
    errors = exc.errors()
    if not errors:
        return "Ogiltig input."
    error = errors[0]
    if error.get("type") == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return "Ogiltig input."


class RegisterRequest(BaseModel):
    """Body of POST /auth/register."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    password: str | None = None
    display_name: str | None = Field(default=None)

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        if not EMAIL_PATTERN.match(text):
            raise ValueError("Ange en giltig e-postadress.")
        return text

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, value: Any) -> str:
        text = str(value or "")
        if len(text) < 8:
            raise ValueError("Lösenordet måste vara minst 8 tecken.")
        return text

    @field_validator("display_name", mode="before")
    @classmethod
    def _display_name(cls, value: Any) -> str | None:
        if _blank(value):
            return None
        text = str(value).strip()
        if len(text) > 80:
            raise ValueError("Visningsnamnet får vara högst 80 tecken.")
        return text

    @model_validator(mode="after")
    def _required(self) -> "RegisterRequest":
        if self.email is None:
            raise ValueError("Ange en giltig e-postadress.")
        if self.password is None:
            raise ValueError("Lösenordet måste vara minst 8 tecken.")
        return self


class LoginRequest(BaseModel):
    """Body of POST /auth/login."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    password: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        if not EMAIL_PATTERN.match(text):
            raise ValueError("Ange en giltig e-postadress.")
        return text

    @model_validator(mode="after")
    def _required(self) -> "LoginRequest":
        if self.email is None:
            raise ValueError("Ange en giltig e-postadress.")
        if not self.password:
            raise ValueError("Ange lösenord.")
        return self


class TreeInput(BaseModel):
    """Body of POST /trees and PATCH /trees/<id>."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return str(value or "").strip()

    @model_validator(mode="after")
    def _required(self) -> "TreeInput":
        if not self.name:
            raise ValueError("Ange ett namn för släkten.")
        return self


class PersonFields(BaseModel):
    """Person fields as sent by a client. Every field is optional here."""

    model_config = ConfigDict(extra="ignore")

    first_name: str | None = None
    last_name: str | None = None
    gender: str | None = None
    birth_year: int | None = None
    death_year: int | None = None
    place_label: str | None = None
    lat: float | None = None
    lng: float | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value).strip()

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, value: Any) -> str | None:
        return normalize_gender(value)

    @field_validator("birth_year", mode="before")
    @classmethod
    def _birth_year(cls, value: Any) -> int | None:
        return parse_year(value, "Ogiltigt födelseår.")

    @field_validator("death_year", mode="before")
    @classmethod
    def _death_year(cls, value: Any) -> int | None:
        return parse_year(value, "Ogiltigt dödsår.")

    @field_validator("place_label", mode="before")
    @classmethod
    def _place_label(cls, value: Any) -> str | None:
        if _blank(value):
            return None
        return str(value).strip()

    @field_validator("lat", mode="before")
    @classmethod
    def _lat(cls, value: Any) -> float | None:
        lat = parse_float(value, "Ogiltig latitud.")
        if lat is not None and not -90 <= lat <= 90:
            raise ValueError("Latitud måste ligga mellan -90 och 90.")
        return lat

    @field_validator("lng", mode="before")
    @classmethod
    def _lng(cls, value: Any) -> float | None:
        lng = parse_float(value, "Ogiltig longitud.")
        if lng is not None and not -180 <= lng <= 180:
            raise ValueError("Longitud måste ligga mellan -180 och 180.")
        return lng


class PersonUpdate(PersonFields):
    """Body of PATCH /trees/<id>/people/<pid>; only sent fields change."""

    def changes(self) -> dict[str, Any]:
        return self.model_dump(include=self.model_fields_set)


class PersonCreate(PersonFields):
    """A complete person record.

    Names are required and the location triple is either fully set or fully
    empty. Coordinates without a label get a generated label.
    """

    @model_validator(mode="after")
    def _complete(self) -> "PersonCreate":
        if not self.first_name or not self.last_name:
            raise ValueError("Ange förnamn och efternamn.")

        if (self.lat is None) != (self.lng is None):
            raise ValueError("Ange både latitud och longitud.")
        if self.lat is None:
            if self.place_label:
                raise ValueError("Ett platsnamn kräver latitud och longitud.")
            self.place_label = None
        elif not self.place_label:
            self.place_label = generated_place_label(self.lat, self.lng)
        return self


class RelationCreate(BaseModel):
    """Body of POST /trees/<id>/relations."""

    model_config = ConfigDict(extra="ignore")

    from_person_id: int | None = None
    to_person_id: int | None = None
    relation_type: str | None = None

    @field_validator("from_person_id", "to_person_id", mode="before")
    @classmethod
    def _person_id(cls, value: Any) -> int | None:
        return parse_int(value, "Ogiltig person.")

    @field_validator("relation_type", mode="before")
    @classmethod
    def _relation_type(cls, value: Any) -> str | None:
        if _blank(value):
            return None
        return normalize_relation_type(str(value))

    @model_validator(mode="after")
    def _complete(self) -> "RelationCreate":
        if self.from_person_id is None or self.to_person_id is None:
            raise ValueError("Välj två personer.")
        if self.from_person_id == self.to_person_id:
            raise ValueError("En person kan inte ha relation till sig själv.")
        if self.relation_type is None:
            raise ValueError("Välj relationstyp.")
        return self
