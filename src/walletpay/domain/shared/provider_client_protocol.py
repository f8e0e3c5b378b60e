"""Protocol interfaces for the wallet provider's client runtime.

The provider's client library is an external collaborator. It owns the payment
sheet and calls back into the page through the fixed set of handler slots in
``PaymentDataCallbacks``, registered once when the client is created.
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Mapping,
    Optional,
    Protocol,
    Union,
)

if TYPE_CHECKING:
    # Avoid circular imports by only importing types during type checking
    from ...application.dtos import (
        AuthorizationResult,
        IsReadyToPayRequest,
        IsReadyToPayResponse,
        MerchantInfo,
        PaymentDataRequest,
        PaymentDataRequestUpdate,
    )


ButtonClickHandler = Callable[[], Awaitable[Any]]


class PaymentDataCallbacks(Protocol):
    """Handler slots the provider invokes while its payment sheet is open.

    Each call must settle exactly once; the provider does not deliver the
    next intent until the previous one has been resolved.
    """

    async def on_payment_authorized(
        self, payment_data: Mapping[str, Any]
    ) -> "AuthorizationResult":
        """Finalize payment with the opaque payload the shopper approved.

        Args:
            payment_data: Raw payment data as delivered by the provider

        Returns:
            ``SUCCESS`` or ``ERROR`` transaction state for the sheet
        """
        ...

    async def on_payment_data_changed(
        self, intermediate_payment_data: Mapping[str, Any]
    ) -> "PaymentDataRequestUpdate":
        """Recompute totals after the shopper changed shipping address or option.

        Args:
            intermediate_payment_data: Raw intermediate data with the callback trigger

        Returns:
            New totals and shipping options, or a structured error

        Raises:
            IntentRejectedError: When the payload cannot be interpreted at all
        """
        ...


class WalletProviderClient(Protocol):
    """Capabilities of the provider's client runtime the negotiation consumes."""

    async def is_ready_to_pay(
        self, request: "IsReadyToPayRequest"
    ) -> Union["IsReadyToPayResponse", Mapping[str, Any]]:
        """Ask whether the viewer can pay with the wallet at all."""
        ...

    def create_button(
        self, on_click: ButtonClickHandler, button_style: Optional[str] = None
    ) -> Any:
        """Create the provider-branded button wired to ``on_click``."""
        ...

    async def load_payment_data(self, request: "PaymentDataRequest") -> None:
        """Open the payment sheet.

        Outcomes are delivered through the registered callbacks. Completes when
        the sheet closes.

        Raises:
            SheetDismissedError: When the shopper closed the sheet without paying
        """
        ...

    async def prefetch_payment_data(self, request: "PaymentDataRequest") -> None:
        """Warm the provider's cache for a later ``load_payment_data`` call."""
        ...


# Factory type for creating provider clients bound to the negotiation callbacks
ProviderClientFactory = Callable[
    ["MerchantInfo", PaymentDataCallbacks], WalletProviderClient
]
