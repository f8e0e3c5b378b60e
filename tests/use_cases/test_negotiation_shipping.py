"""Use case tests for shipping address and shipping option round trips."""

from __future__ import annotations

import asyncio

import pytest

from walletpay.application.dtos import PaymentDataRequestUpdate, ShippingTotals
from walletpay.application.use_cases.negotiation import NegotiationOrchestrator
from walletpay.domain.entities import NegotiationState, OutcomeReason
from walletpay.domain.errors import BackendError
from walletpay.infrastructure.presentation.checkout_region import CheckoutRegion
from tests.fixtures import (
    GENERIC_ERROR,
    ProviderButton,
    ScriptedProviderClient,
    StubMerchantGateway,
    address_changed,
    option_changed,
)

NO_OPTIONS = ShippingTotals.model_validate(
    {
        "newTransactionInfo": {"totalPrice": "42.00", "currencyCode": "USD"},
        "newShippingOptionParameters": {"shippingOptions": []},
    }
)


@pytest.mark.asyncio
async def test_address_change_resolves_with_recalculated_totals(
    button: ProviderButton,
    provider: ScriptedProviderClient,
    gateway: StubMerchantGateway,
) -> None:
    provider.queue_data_changed(address_changed())

    await button.click()

    (update,) = provider.resolutions
    wire = update.to_wire()
    assert wire["newTransactionInfo"]["totalPrice"] == "47.00"
    options = wire["newShippingOptionParameters"]["shippingOptions"]
    assert [option["id"] for option in options] == ["flat_rate:1", "free_shipping:2"]
    assert "error" not in wire

    (call,) = gateway.calls_to("recalculate_totals")
    assert call["shipping_method_id"] == ""
    assert call["shipping_address"].postal_code == "94043"


@pytest.mark.asyncio
async def test_option_change_passes_selected_option_to_backend(
    button: ProviderButton,
    provider: ScriptedProviderClient,
    gateway: StubMerchantGateway,
) -> None:
    provider.queue_data_changed(option_changed("free_shipping:2"))

    await button.click()

    (call,) = gateway.calls_to("recalculate_totals")
    assert call["shipping_method_id"] == "free_shipping:2"
    assert provider.resolutions[0].error is None


@pytest.mark.asyncio
async def test_initialize_trigger_is_treated_as_address_change(
    button: ProviderButton,
    provider: ScriptedProviderClient,
    gateway: StubMerchantGateway,
) -> None:
    provider.queue_data_changed(
        {"callbackTrigger": "INITIALIZE", "shippingAddress": {"countryCode": "US"}}
    )

    await button.click()

    (call,) = gateway.calls_to("recalculate_totals")
    assert call["shipping_method_id"] == ""
    assert provider.resolutions[0].error is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        address_changed({"countryCode": "US", "postalCode": "99950"}),
        option_changed("flat_rate:1"),
    ],
    ids=["address_change", "option_change"],
)
async def test_no_shipping_options_resolves_unserviceable(
    payload: dict,
    button: ProviderButton,
    provider: ScriptedProviderClient,
    gateway: StubMerchantGateway,
    region: CheckoutRegion,
) -> None:
    gateway.queue_totals(NO_OPTIONS)
    provider.queue_data_changed(payload)

    await button.click()

    (update,) = provider.resolutions
    assert update.to_wire() == {
        "error": {
            "reason": "SHIPPING_ADDRESS_UNSERVICEABLE",
            "message": "Cannot ship to the selected address",
            "intent": "SHIPPING_ADDRESS",
        }
    }
    assert region.error_banners == []


@pytest.mark.asyncio
async def test_backend_error_resolves_generic_error_and_keeps_sheet_open(
    ready_orchestrator: NegotiationOrchestrator,
    button: ProviderButton,
    provider: ScriptedProviderClient,
    gateway: StubMerchantGateway,
    region: CheckoutRegion,
) -> None:
    gateway.queue_totals(BackendError("Could not recalculate totals. Invalid address"))
    provider.queue_data_changed(option_changed("flat_rate:1"))
    released = provider.hold_open()

    task = asyncio.create_task(button.click())
    await provider.sheet_opened.wait()
    while not provider.resolutions:
        await asyncio.sleep(0)

    (update,) = provider.resolutions
    assert update.error is not None
    assert update.error.reason == "OTHER_ERROR"
    assert update.error.message == GENERIC_ERROR
    assert update.error.intent == "SHIPPING_OPTION"
    assert update.new_transaction_info is None
    assert ready_orchestrator.state is NegotiationState.SHEET_OPEN
    assert region.error_banners == []

    released.set()
    await task


@pytest.mark.asyncio
async def test_shopper_can_retry_after_backend_error(
    button: ProviderButton,
    provider: ScriptedProviderClient,
    gateway: StubMerchantGateway,
) -> None:
    gateway.queue_totals(BackendError("Could not recalculate totals."))
    provider.queue_data_changed(address_changed())
    provider.queue_data_changed(address_changed())
    provider.queue_authorized()

    session = await button.click()

    first, second, authorization = provider.resolutions
    assert first.error is not None
    assert second.error is None
    assert authorization.transaction_state == "SUCCESS"
    assert session is not None
    assert session.round_trips == 2


@pytest.mark.asyncio
async def test_round_trips_never_overlap(
    ready_orchestrator: NegotiationOrchestrator,
    button: ProviderButton,
    provider: ScriptedProviderClient,
    gateway: StubMerchantGateway,
) -> None:
    released = provider.hold_open()
    task = asyncio.create_task(button.click())
    await provider.sheet_opened.wait()

    updates = await asyncio.gather(
        ready_orchestrator.on_payment_data_changed(address_changed()),
        ready_orchestrator.on_payment_data_changed(option_changed("free_shipping:2")),
        ready_orchestrator.on_payment_data_changed(address_changed()),
    )

    assert gateway.max_in_flight == 1
    assert len(gateway.calls_to("recalculate_totals")) == 3
    assert all(isinstance(update, PaymentDataRequestUpdate) for update in updates)
    assert all(update.error is None for update in updates)

    released.set()
    await task


@pytest.mark.asyncio
async def test_malformed_intermediate_data_rejects_and_fails_session(
    button: ProviderButton,
    provider: ScriptedProviderClient,
    gateway: StubMerchantGateway,
    region: CheckoutRegion,
) -> None:
    provider.queue_data_changed({"callbackTrigger": "SHIPPING_OPTION"})
    provider.queue_authorized()

    session = await button.click()

    (rejection,) = provider.rejections
    assert rejection.error.message == GENERIC_ERROR
    assert provider.resolutions == []
    assert gateway.calls_to("recalculate_totals") == []
    assert gateway.calls_to("authorize_payment") == []
    assert session is not None
    assert session.state is NegotiationState.FAILED
    assert session.outcome is not None
    assert session.outcome.reason is OutcomeReason.MALFORMED_PROVIDER_PAYLOAD
    assert [banner.messages for banner in region.error_banners] == [(GENERIC_ERROR,)]
    assert region.busy is False


@pytest.mark.asyncio
async def test_data_changed_without_open_session_resolves_error(
    ready_orchestrator: NegotiationOrchestrator, gateway: StubMerchantGateway
) -> None:
    update = await ready_orchestrator.on_payment_data_changed(address_changed())

    assert update.error is not None
    assert update.error.reason == "OTHER_ERROR"
    assert gateway.calls_to("recalculate_totals") == []
