# kiosk/cart/tokens.py
import jwt

from kiosk import config
from kiosk.errors import ClientStorageFullError, DraftDeserializationError


def encode_payload(payload: dict) -> str:
    return jwt.encode(payload, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_payload(token: str) -> dict:
    try:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except jwt.InvalidTokenError as e:
        raise DraftDeserializationError(f"Invalid client payload: {e}") from e


def encode_for_cookie(key: str, payload: dict) -> str:
    """Sign ``payload`` and make sure the cookie ``key=token`` stays under the browser limit."""
    token = encode_payload(payload)
    size = len(key) + len(token)
    if size > config.MAX_COOKIE_BYTES:
        raise ClientStorageFullError(key, size, config.MAX_COOKIE_BYTES)
    return token
