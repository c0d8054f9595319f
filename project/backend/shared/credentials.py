"""
API key selection.

Stands in for the host's key picker: the gateway holds the selected Gemini
API key, and a front-end supplies a new one when selection is requested.
"""

import asyncio
from typing import Optional, Protocol

from shared.config import settings
from shared.errors import CredentialMissingError, ValidationError
from shared.logging import get_logger

logger = get_logger(__name__)


class CredentialSelector(Protocol):
    """Host capability for choosing an access credential."""

    async def has_selected_api_key(self) -> bool:
        ...

    async def open_select_key(self) -> None:
        ...

    @property
    def api_key(self) -> Optional[str]:
        ...


class ApiKeyStore:
    """In-memory API key holder with a selection-request flag."""

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key
        self.selection_requested = False
        self._lock = asyncio.Lock()

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    async def has_selected_api_key(self) -> bool:
        return self._api_key is not None

    async def open_select_key(self) -> None:
        """
        Ask the user to choose a key.

        The current key is dropped so that the next run cannot reuse it;
        the front-end sees ``selection_requested`` and posts a new key.
        """
        async with self._lock:
            self._api_key = None
            self.selection_requested = True
        logger.warning("API key selection requested")

    async def select_key(self, api_key: str) -> None:
        api_key = api_key.strip() if api_key else ""
        if not api_key:
            raise ValidationError("API key must not be empty")
        async with self._lock:
            self._api_key = api_key
            self.selection_requested = False
        logger.info("API key selected")


async def resolve_api_key(selector: Optional[CredentialSelector]) -> str:
    """
    Return the key to use for remote calls.

    Consults the selector first and prompts for a key if none has been
    chosen; falls back to the configured key when there is no selector.

    Raises:
        CredentialMissingError: If no key is available
    """
    if selector is not None:
        if not await selector.has_selected_api_key():
            await selector.open_select_key()
        api_key = selector.api_key
    else:
        api_key = settings.gemini_api_key

    if not api_key:
        raise CredentialMissingError("API key environment missing.", code="CREDENTIAL_MISSING")
    return api_key


# Singleton instance
api_key_store = ApiKeyStore(settings.gemini_api_key)
