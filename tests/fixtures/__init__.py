"""Test doubles for the negotiation's collaborators."""

from .scripted_provider_client import (
    PAYMENT_DATA,
    SHIPPING_ADDRESS,
    ProviderButton,
    ScriptedProviderClient,
    address_changed,
    option_changed,
)
from .settings_env import GENERIC_ERROR, REQUIRED_ENV
from .stub_merchant_gateway import DEFAULT_TOTALS, StubMerchantGateway

__all__ = [
    "DEFAULT_TOTALS",
    "GENERIC_ERROR",
    "PAYMENT_DATA",
    "ProviderButton",
    "REQUIRED_ENV",
    "SHIPPING_ADDRESS",
    "ScriptedProviderClient",
    "StubMerchantGateway",
    "address_changed",
    "option_changed",
]
