"""Account API endpoints: registration, login and the current user."""

import logging

from quart import Blueprint, current_app, jsonify

from slakttrad.backend.api.common import current_user, get_db, parse_body, require_auth
from slakttrad.errors import AuthenticationError
from slakttrad.schemas import LoginRequest, RegisterRequest
from slakttrad.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


def _token_for(user_id: int, email: str) -> str:
    return create_access_token(
        user_id,
        email,
        secret=current_app.config["JWT_ACCESS_SECRET"],
        ttl_seconds=current_app.config["JWT_ACCESS_TTL_SECONDS"],
    )


@auth_bp.route("/auth/register", methods=["POST"])
async def register():
    """Create an account.

    Expects JSON body with:
        - email
        - password: at least 8 characters
        - display_name: optional, at most 80 characters

    Returns:
        JSON with access_token (201), 409 if the email is taken
    """
    body = await parse_body(RegisterRequest)
    user = get_db().create_user(
        email=body.email,
        password_hash=hash_password(body.password),
        display_name=body.display_name,
    )
    logger.info("Registered user %s", user.id)
    return jsonify({"access_token": _token_for(user.id, user.email)}), 201


@auth_bp.route("/auth/login", methods=["POST"])
async def login():
    """Exchange email and password for an access token."""
    body = await parse_body(LoginRequest)
    user = get_db().get_user_by_email(body.email)
    if user is None or not verify_password(user.password_hash, body.password):
        raise AuthenticationError("Fel e-post eller lösenord.")
    return jsonify({"access_token": _token_for(user.id, user.email)})


@auth_bp.route("/me", methods=["GET"])
@require_auth
async def me():
    """Get the logged-in user."""
    auth_user = current_user()
    user = get_db().get_user(auth_user.id)
    if user is None:
        return jsonify({"id": auth_user.id, "email": auth_user.email, "display_name": None})
    return jsonify(user.to_dict())
