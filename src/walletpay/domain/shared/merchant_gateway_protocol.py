"""Protocol interface for merchant backend gateway implementations.

This protocol enables dependency injection by allowing the orchestrator to
accept any implementation that satisfies it, rather than being tightly
coupled to the HTTP client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol

if TYPE_CHECKING:
    from ...application.dtos import (
        IntermediateAddress,
        PaymentData,
        PaymentRedirect,
        ShippingTotals,
        TransactionInfo,
    )
    from ..entities import SessionContext


class MerchantGatewayProtocol(Protocol):
    """Round trips the negotiation needs from the merchant backend.

    Every method raises ``BackendError`` on any failure, transport or
    application level alike.
    """

    async def fetch_transaction_info(
        self, context: "SessionContext"
    ) -> "TransactionInfo":
        """Fetch current cart or product pricing.

        Args:
            context: Session context carrying nonces and the optional product id

        Returns:
            Transaction info to show on the payment sheet
        """
        ...

    async def recalculate_totals(
        self,
        context: "SessionContext",
        shipping_address: Optional["IntermediateAddress"],
        shipping_method_id: str,
    ) -> "ShippingTotals":
        """Recalculate totals for a shipping selection.

        Args:
            context: Session context
            shipping_address: Partial address shared by the provider
            shipping_method_id: Chosen shipping option id, empty when none was chosen

        Returns:
            Totals with the shipping options list, possibly empty
        """
        ...

    async def authorize_payment(
        self,
        context: "SessionContext",
        payment_data: "PaymentData | Mapping[str, Any]",
    ) -> "PaymentRedirect":
        """Submit the approved payment payload for authorization.

        Returns:
            Redirect target for the shopper once payment succeeded
        """
        ...

    async def aclose(self) -> None:
        """Release transport resources held by the gateway."""
        ...
