"""JWT helpers for authenticating API callers.

Tokens are issued by the identity collaborator; this service only creates
them for tooling/tests and verifies them on every request.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from src.config.settings import get_settings


ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token.

    Args:
        data: Claims, typically {"sub": user_id, "email": email, "role": role}
        expires_delta: Token lifetime (default from settings)

    Returns:
        Encoded JWT string
    """
    settings = get_settings()

    now = datetime.now(UTC)
    to_encode = {
        **data,
        "exp": now
        + (
            expires_delta
            or timedelta(minutes=settings.auth_access_token_expire_minutes)
        ),
        "iat": now,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(
        to_encode,
        settings.auth_secret_key,
        algorithm=settings.auth_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        JWTError: If the signature, expiry or token type is invalid, or
            required claims are missing
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        msg = "Invalid token type"
        raise JWTError(msg)

    if not payload.get("sub") or not payload.get("role"):
        msg = "Missing required claims"
        raise JWTError(msg)

    return payload
