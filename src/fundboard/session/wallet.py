"""Wallet capability consumed by the session layer.

The wallet itself (key storage, signing, RPC submission) lives outside
this project. Implementations wrap whatever wallet adapter the front-end
uses and call _notify_account_changed when the connected account changes.
"""

import base64
import binascii
from abc import ABC, abstractmethod
from collections.abc import Callable

from fundboard.logging import get_logger

logger = get_logger(__name__)

AccountListener = Callable[[str | None], None]


def prepare_transaction(transaction: str) -> bytes:
    """Decode the base64 unsigned transaction returned by the BFF.

    Raises:
        ValueError: the string is not valid base64.
    """
    try:
        return base64.b64decode(transaction, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Malformed transaction payload: {e}") from e


class WalletAdapter(ABC):
    """Abstract wallet: current account, signing, account-change notifications."""

    def __init__(self) -> None:
        self._listeners: list[AccountListener] = []

    @property
    @abstractmethod
    def account_id(self) -> str | None:
        """Base58 public key of the connected account, or None when disconnected."""
        ...

    @abstractmethod
    async def sign_and_submit(self, transaction: bytes) -> str:
        """Sign a prepared transaction, submit it and return its signature."""
        ...

    def subscribe(self, listener: AccountListener) -> Callable[[], None]:
        """Register a listener for account changes. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify_account_changed(self, account_id: str | None) -> None:
        logger.debug("wallet_account_changed", account_id=account_id)
        for listener in list(self._listeners):
            listener(account_id)
