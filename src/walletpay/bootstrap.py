"""Wiring for a page's wallet payment handler."""

from __future__ import annotations

from typing import Optional

import httpx

from .application.use_cases.negotiation import NegotiationOrchestrator
from .domain.entities import PageLayout
from .domain.shared import (
    MerchantGatewayProtocol,
    PresentationFactory,
    ProviderClientFactory,
)
from .env import Settings, get_settings
from .infrastructure.merchant.gateway_client import MerchantGatewayClient
from .infrastructure.presentation.checkout_region import CheckoutRegion


def create_orchestrator(
    provider_factory: ProviderClientFactory,
    settings: Optional[Settings] = None,
    *,
    gateway: Optional[MerchantGatewayProtocol] = None,
    presentation_factory: PresentationFactory = CheckoutRegion,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> NegotiationOrchestrator:
    """Build an orchestrator from settings, defaulting to env-sourced ones.

    The HTTP gateway is created from ``settings.ajax_url`` unless a gateway is
    passed in; ``transport`` is forwarded to it for tests and proxies. A gateway
    created here is closed by the orchestrator's ``aclose()``, an injected one
    is left to its owner.
    """
    settings = settings or get_settings()
    owns_gateway = gateway is None
    if gateway is None:
        gateway = MerchantGatewayClient(
            settings.ajax_url, timeout=settings.http_timeout, transport=transport
        )
    return NegotiationOrchestrator(
        settings=settings,
        gateway=gateway,
        provider_factory=provider_factory,
        presentation_factory=presentation_factory,
        owns_gateway=owns_gateway,
    )


async def start(
    page: PageLayout,
    provider_factory: ProviderClientFactory,
    settings: Optional[Settings] = None,
) -> NegotiationOrchestrator:
    """Create and initialize the handler for ``page``.

    Other page scripts synchronize on the returned orchestrator's
    ``wait_until_loaded()``.
    The caller closes it with ``aclose()`` when the page is left.
    """
    orchestrator = create_orchestrator(provider_factory, settings)
    await orchestrator.initialize(page)
    return orchestrator
