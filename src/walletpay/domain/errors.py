"""Domain-specific exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..application.dtos import PaymentDataError


class WalletPayError(Exception):
    """Base error for the wallet payment negotiation."""


class BackendError(WalletPayError):
    """Raised when the merchant backend fails a request.

    Transport failures, non-successful HTTP statuses, undecodable bodies,
    ``success: false`` envelopes and payloads that do not match the expected
    schema all collapse into this one error.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SheetDismissedError(WalletPayError):
    """Raised by provider clients when the shopper closes the payment sheet."""


class IntentRejectedError(WalletPayError):
    """Raised back to the provider when a callback cannot be resolved.

    Carries the structured error so provider adapters can forward it as the
    rejection value.
    """

    def __init__(self, error: "PaymentDataError") -> None:
        self.error = error
        super().__init__(error.message)


class StateTransitionError(WalletPayError):
    """Raised on a transition the negotiation state machine does not allow."""
