"""
storage.py - durable client-side key/value storage.

The cart and the checkout draft have to survive a full navigation to the
payment provider and back, so they live in the browser. ``CookieStorage``
reads the request cookies and buffers writes until ``apply`` copies them onto
the outgoing response.
"""

from typing import Dict, Optional, Protocol

from fastapi import Request, Response

from kiosk import config

_DELETED = object()


class ClientStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class CookieStorage:
    def __init__(self, request: Request):
        self.cookies = dict(request.cookies)
        self.pending: Dict[str, object] = {}

    def get(self, key: str) -> Optional[str]:
        if key in self.pending:
            value = self.pending[key]
            return None if value is _DELETED else value
        return self.cookies.get(key)

    def set(self, key: str, value: str) -> None:
        self.pending[key] = value

    def delete(self, key: str) -> None:
        self.pending[key] = _DELETED

    def apply(self, response: Response) -> Response:
        for key, value in self.pending.items():
            if value is _DELETED:
                response.delete_cookie(key, path="/")
            else:
                response.set_cookie(key=key, value=value, path="/", httponly=True,
                                    secure=config.COOKIE_SECURE, samesite="lax")
        self.pending.clear()
        return response
