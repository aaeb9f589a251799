"""Helpers shared by the API blueprints."""

from functools import wraps
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from quart import current_app, g, request

from slakttrad.errors import AuthenticationError, InvalidInputError
from slakttrad.schemas import first_error_message
from slakttrad.security import AuthUser, decode_access_token
from slakttrad.storage.sqlite import FamilyTreeDatabase

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_db() -> FamilyTreeDatabase:
    """Get the database attached to the running app."""
    return current_app.extensions["family_db"]


async def parse_body(model: type[ModelT]) -> ModelT:
    """Validate the JSON request body against a schema.

    Raises:
        InvalidInputError: If the body is not a JSON object or fails validation
    """
    data = await request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInputError("Ogiltig input.")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(first_error_message(e)) from e


def current_user() -> AuthUser:
    return g.user


def require_auth(func):
    """Require a valid bearer token; the user is available via current_user()."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any):
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            raise AuthenticationError("Du måste vara inloggad.")
        token = header[len("Bearer ") :].strip()
        g.user = decode_access_token(token, current_app.config["JWT_ACCESS_SECRET"])
        return await func(*args, **kwargs)

    return wrapper
