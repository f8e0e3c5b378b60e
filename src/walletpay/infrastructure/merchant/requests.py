"""Request objects for the merchant backend's AJAX endpoints.

Each request knows its action id, nonce and parameters, and can render itself
either in full (sent over the wire) or with secrets masked (written to logs).
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from ...application.dtos import IntermediateAddress, PaymentData
from ...domain.entities import SessionContext

MASK = "***"


class GatewayRequest:
    """Base merchant backend request posted to the AJAX endpoint."""

    operation: str = ""

    # Parameter names whose values never reach the logs
    sensitive_params: frozenset[str] = frozenset({"nonce"})

    def __init__(self, context: SessionContext, nonce: str = "") -> None:
        self.context = context
        self.nonce = nonce
        self._request_data: Optional[dict[str, str]] = None

    @property
    def action(self) -> str:
        return f"wc_{self.context.gateway_id}_google_pay_{self.operation}"

    def get_method(self) -> str:
        return "POST"

    def get_path(self) -> str:
        # Everything goes to the configured AJAX URL; the action selects the handler
        return ""

    def get_params(self) -> dict[str, str]:
        """Operation-specific parameters, without action, nonce or product id."""
        return {}

    def get_request_data(self) -> dict[str, str]:
        if self._request_data is None:
            data = {"action": self.action}
            if self.nonce:
                data["nonce"] = self.nonce
            data.update(self.get_params())
            if self.context.product_id:
                data["productID"] = self.context.product_id
            self._request_data = data
        return self._request_data

    def to_string(self) -> str:
        return json.dumps(self.get_request_data(), sort_keys=True)

    def to_string_safe(self) -> str:
        """Request rendering with sensitive values masked, safe for logs."""
        safe = {
            key: (MASK if key in self.sensitive_params else value)
            for key, value in self.get_request_data().items()
        }
        return json.dumps(safe, sort_keys=True)


class TransactionInfoRequest(GatewayRequest):
    operation = "get_transaction_info"

    def __init__(self, context: SessionContext) -> None:
        super().__init__(context, nonce=context.transaction_info_nonce)


class RecalculateTotalsRequest(GatewayRequest):
    operation = "recalculate_totals"

    def __init__(
        self,
        context: SessionContext,
        shipping_address: Optional[IntermediateAddress],
        shipping_method_id: str,
    ) -> None:
        super().__init__(context, nonce=context.recalculate_totals_nonce)
        self.shipping_address = shipping_address
        self.shipping_method_id = shipping_method_id

    def get_params(self) -> dict[str, str]:
        address = self.shipping_address.to_wire() if self.shipping_address else {}
        return {
            "shippingAddress": json.dumps(address, sort_keys=True),
            "shippingMethod": self.shipping_method_id,
        }


class ProcessPaymentRequest(GatewayRequest):
    operation = "process_payment"
    sensitive_params = frozenset({"nonce", "paymentData"})

    def __init__(
        self,
        context: SessionContext,
        payment_data: "PaymentData | Mapping[str, Any]",
    ) -> None:
        super().__init__(context, nonce=context.process_nonce)
        self.payment_data = payment_data

    def get_params(self) -> dict[str, str]:
        if isinstance(self.payment_data, PaymentData):
            encoded = self.payment_data.to_json()
        else:
            encoded = json.dumps(dict(self.payment_data), separators=(",", ":"))
        return {"paymentData": encoded}
