# hure_core/client/session.py
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Protocol, Union

logger = logging.getLogger(__name__)

UnauthorizedHook = Callable[[], Union[None, Awaitable[None]]]


class TokenStore(Protocol):
    def get(self) -> Optional[str]: ...

    def set(self, token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    def __init__(self, token: Optional[str] = None):
        self._token = token

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class ApiSession:
    """
    Credential state for one client: a token store plus the hook that runs
    when the backend answers 401 (e.g. redirect to the login screen).
    """

    def __init__(self, store: Optional[TokenStore] = None, on_unauthorized: Optional[UnauthorizedHook] = None):
        self.store: TokenStore = store if store is not None else MemoryTokenStore()
        self.on_unauthorized = on_unauthorized

    @property
    def token(self) -> Optional[str]:
        return self.store.get()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.store.get())

    def login(self, token: str) -> None:
        self.store.set(token)

    def auth_headers(self) -> dict[str, str]:
        token = self.store.get()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def expire(self) -> None:
        logger.info("Session expired; clearing stored credentials")
        self.store.clear()
        if self.on_unauthorized is not None:
            result = self.on_unauthorized()
            if result is not None:
                await result
