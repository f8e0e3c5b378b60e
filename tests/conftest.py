"""Shared pytest fixtures for wallet negotiation tests."""

from __future__ import annotations

from typing import Callable

import pytest

from walletpay.application.use_cases.negotiation import NegotiationOrchestrator
from walletpay.domain.entities import CheckoutSurface, PageLayout, SessionContext
from walletpay.env import Settings
from walletpay.infrastructure.presentation.checkout_region import CheckoutRegion
from tests.fixtures import GENERIC_ERROR, ScriptedProviderClient, StubMerchantGateway


@pytest.fixture
def settings() -> Settings:
    """Handler settings as a storefront would localize them."""
    return Settings(
        plugin_id="example_gateway",
        merchant_id="BCR2DN4T000000",
        merchant_name="Example Store",
        gateway_id="example_gateway_credit_card",
        ajax_url="https://shop.example.com/wp-admin/admin-ajax.php",
        transaction_info_nonce="txn-nonce",
        recalculate_totals_nonce="recalc-nonce",
        process_nonce="process-nonce",
        card_types=["VISA", "MASTERCARD"],
        generic_error=GENERIC_ERROR,
    )


@pytest.fixture
def context(settings: Settings) -> SessionContext:
    return settings.session_context(CheckoutSurface.CHECKOUT)


@pytest.fixture
def checkout_page() -> PageLayout:
    return PageLayout.with_forms("form.woocommerce-checkout")


@pytest.fixture
def gateway() -> StubMerchantGateway:
    return StubMerchantGateway()


@pytest.fixture
def provider() -> ScriptedProviderClient:
    return ScriptedProviderClient()


@pytest.fixture
def regions() -> list[CheckoutRegion]:
    """Every region the orchestrator binds, in binding order."""
    return []


@pytest.fixture
def region_factory(
    regions: list[CheckoutRegion],
) -> Callable[[CheckoutSurface], CheckoutRegion]:
    def factory(surface: CheckoutSurface) -> CheckoutRegion:
        region = CheckoutRegion(surface)
        regions.append(region)
        return region

    return factory


@pytest.fixture
def orchestrator(
    settings: Settings,
    gateway: StubMerchantGateway,
    provider: ScriptedProviderClient,
    region_factory: Callable[[CheckoutSurface], CheckoutRegion],
) -> NegotiationOrchestrator:
    return NegotiationOrchestrator(
        settings=settings,
        gateway=gateway,
        provider_factory=provider.factory,
        presentation_factory=region_factory,
    )
