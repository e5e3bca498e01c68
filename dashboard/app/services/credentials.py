from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional


@dataclass(frozen=True)
class Credential:
    """A bearer credential for the current session."""
    token: str = field(repr=False)


class CredentialProvider(ABC):
    """Source of the current session's bearer credential.

    The session itself is owned by the application shell (sign-in, refresh,
    sign-out); the request client only reads it.
    """

    @abstractmethod
    async def get_current_credential(self) -> Optional[Credential]:
        """Return the active credential, or None when there is no session."""
        pass


class StaticCredentialProvider(CredentialProvider):
    """Holds a token set by the shell on sign-in and cleared on sign-out."""

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    def set_token(self, token: Optional[str]) -> None:
        self._token = token or None

    def clear(self) -> None:
        self._token = None

    async def get_current_credential(self) -> Optional[Credential]:
        if self._token is None:
            return None
        return Credential(token=self._token)


class CallableCredentialProvider(CredentialProvider):
    """Adapts an async session lookup returning a token (or None)."""

    def __init__(self, fetch_token: Callable[[], Awaitable[Optional[str]]]):
        self._fetch_token = fetch_token

    async def get_current_credential(self) -> Optional[Credential]:
        token = await self._fetch_token()
        if not token:
            return None
        return Credential(token=token)
