"""Password hashing and access tokens."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from slakttrad.errors import AuthenticationError

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class AuthUser:
    """Identity carried by a verified access token."""

    id: int
    email: str


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def create_access_token(user_id: int, email: str, secret: str, ttl_seconds: int) -> str:
    """Sign an access token.

    Args:
        user_id: Subject of the token
        email: Email claim
        secret: HMAC signing secret
        ttl_seconds: Lifetime of the token

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, secret: str) -> AuthUser:
    """Verify an access token and extract the user.

    Raises:
        AuthenticationError: If the token is invalid, expired or lacks sub/email
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        raise AuthenticationError("Ogiltig eller utgången token.") from e

    sub = payload.get("sub")
    email = payload.get("email")
    if not isinstance(sub, str) or not sub.isdigit() or not isinstance(email, str):
        raise AuthenticationError("Ogiltig eller utgången token.")
    return AuthUser(id=int(sub), email=email)
