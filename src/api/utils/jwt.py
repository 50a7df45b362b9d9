from typing import Optional

from jose import JWTError, jwt

from config import ApplicationConfig


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode a caller's access token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict, or None if invalid, expired or missing a subject
    """
    try:
        payload = jwt.decode(
            token,
            ApplicationConfig.JWT_SECRET,
            algorithms=[ApplicationConfig.JWT_ALGORITHM],
        )
    except JWTError:
        return None

    if not payload.get("sub"):
        return None
    return payload
