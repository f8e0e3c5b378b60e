"""HTTP client for the merchant backend's wallet payment endpoints."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional, Type, TypeVar
from types import TracebackType

import httpx
from prometheus_client import Counter, Histogram
from pydantic import BaseModel, ValidationError

from ...application.dtos import (
    BackendEnvelope,
    IntermediateAddress,
    PaymentData,
    PaymentRedirect,
    ShippingTotals,
    TransactionInfo,
)
from ...domain.entities import SessionContext
from ...domain.errors import BackendError
from ..http.http_client import AsyncHttpClient
from .requests import (
    GatewayRequest,
    ProcessPaymentRequest,
    RecalculateTotalsRequest,
    TransactionInfoRequest,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

GATEWAY_DURATION_BUCKETS = (
    [float(x) for x in range(50, 500, 50)]
    + [float(x) for x in range(500, 5500, 500)]
    + [float("inf")]
)

gateway_requests_total = Counter(
    "walletpay_gateway_requests_total",
    "Total merchant backend requests issued during wallet negotiations",
    ["action", "status"],
)
gateway_request_duration_milliseconds = Histogram(
    "walletpay_gateway_request_duration_milliseconds",
    "Wall time of a merchant backend round trip (ms)",
    ["action", "status"],
    buckets=GATEWAY_DURATION_BUCKETS,
)


class MerchantGatewayClient:
    """Asynchronous client for the merchant backend AJAX endpoints.

    Each operation issues exactly one POST and either returns the parsed
    success payload or raises ``BackendError``. Transport and application
    failures look the same to callers.
    """

    def __init__(
        self,
        ajax_url: str,
        timeout: float = 10.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(ajax_url, timeout=timeout, transport=transport)

    async def fetch_transaction_info(self, context: SessionContext) -> TransactionInfo:
        """Fetch current cart or product pricing."""
        payload = await self._dispatch(
            TransactionInfoRequest(context), "Could not build transaction info."
        )
        return self._parse(
            TransactionInfo, payload, "Could not build transaction info."
        )

    async def recalculate_totals(
        self,
        context: SessionContext,
        shipping_address: Optional[IntermediateAddress],
        shipping_method_id: str,
    ) -> ShippingTotals:
        """Recalculate totals and shipping options for a shipping selection."""
        request = RecalculateTotalsRequest(context, shipping_address, shipping_method_id)
        payload = await self._dispatch(request, "Could not recalculate totals.")
        return self._parse(ShippingTotals, payload, "Could not recalculate totals.")

    async def authorize_payment(
        self,
        context: SessionContext,
        payment_data: "PaymentData | Mapping[str, Any]",
    ) -> PaymentRedirect:
        """Submit the provider's payment payload; returns the post-payment redirect."""
        request = ProcessPaymentRequest(context, payment_data)
        payload = await self._dispatch(request, "Payment could not be processed.")
        return self._parse(PaymentRedirect, payload, "Payment could not be processed.")

    async def _dispatch(self, request: GatewayRequest, failure_prefix: str) -> Any:
        """Post ``request`` and unwrap the ``{success, data}`` envelope."""
        logger.debug("Dispatching %s", request.to_string_safe())
        operation = request.operation
        start_time = time.perf_counter()
        status = "error"
        try:
            resp = await self._http.post_form(
                request.get_path(), data=request.get_request_data()
            )
            envelope = BackendEnvelope.model_validate(resp.json())
            if not envelope.success:
                status = "rejected"
                raise BackendError(f"{failure_prefix} {envelope.failure_message()}")
            status = "success"
            return envelope.payload()
        except httpx.HTTPStatusError as e:
            status = "http_error"
            raise BackendError(
                f"{failure_prefix} HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            status = "transport_error"
            raise BackendError(f"{failure_prefix} {e}") from e
        except ValueError as e:
            # Undecodable body or an envelope without a success flag
            status = "invalid_response"
            raise BackendError(f"{failure_prefix} Invalid response: {e}") from e
        finally:
            elapsed = (time.perf_counter() - start_time) * 1000
            gateway_requests_total.labels(action=operation, status=status).inc()
            gateway_request_duration_milliseconds.labels(
                action=operation, status=status
            ).observe(elapsed)

    @staticmethod
    def _parse(model: Type[ModelT], payload: Any, failure_prefix: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise BackendError(f"{failure_prefix} Invalid response data: {e}") from e

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "MerchantGatewayClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
