"""Pytest fixtures for negotiation use case tests."""

from __future__ import annotations

import pytest

from walletpay.application.use_cases.negotiation import NegotiationOrchestrator
from walletpay.domain.entities import PageLayout
from walletpay.infrastructure.presentation.checkout_region import CheckoutRegion
from tests.fixtures import ProviderButton, ScriptedProviderClient


@pytest.fixture
async def ready_orchestrator(
    orchestrator: NegotiationOrchestrator, checkout_page: PageLayout
) -> NegotiationOrchestrator:
    """Orchestrator initialized on a checkout page with the button shown."""
    assert await orchestrator.initialize(checkout_page) is True
    return orchestrator


@pytest.fixture
def button(
    ready_orchestrator: NegotiationOrchestrator, provider: ScriptedProviderClient
) -> ProviderButton:
    return provider.buttons[0]


@pytest.fixture
def region(
    ready_orchestrator: NegotiationOrchestrator, regions: list[CheckoutRegion]
) -> CheckoutRegion:
    return regions[0]
