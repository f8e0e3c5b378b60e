"""Shared domain contracts.

This package is domain-accessible and should not depend on application code.
"""

from .merchant_gateway_protocol import MerchantGatewayProtocol
from .presentation_protocol import PresentationAdapter, PresentationFactory
from .provider_client_protocol import (
    ButtonClickHandler,
    PaymentDataCallbacks,
    ProviderClientFactory,
    WalletProviderClient,
)

__all__ = [
    "ButtonClickHandler",
    "MerchantGatewayProtocol",
    "PaymentDataCallbacks",
    "PresentationAdapter",
    "PresentationFactory",
    "ProviderClientFactory",
    "WalletProviderClient",
]
