"""Pure builders for the descriptors handed to the wallet provider.

Every function here is synchronous and deterministic: the same context and
inputs always produce structurally identical output. Nothing is cached or
mutated between calls.
"""

from __future__ import annotations

from ..domain.entities import CallbackIntent, SessionContext
from .dtos import (
    CardParameters,
    GatewayParameters,
    IsReadyToPayRequest,
    MerchantInfo,
    PaymentDataError,
    PaymentDataRequest,
    PaymentMethodDescriptor,
    ShippingAddressParameters,
    TokenizationSpecification,
    TransactionInfo,
)

ALLOWED_CARD_AUTH_METHODS = ("PAN_ONLY", "CRYPTOGRAM_3DS")

SUBSCRIBED_CALLBACK_INTENTS = (
    CallbackIntent.SHIPPING_ADDRESS_CHANGED,
    CallbackIntent.SHIPPING_OPTION_CHANGED,
    CallbackIntent.PAYMENT_AUTHORIZED,
)

UNSERVICEABLE_ADDRESS_REASON = "SHIPPING_ADDRESS_UNSERVICEABLE"
UNSERVICEABLE_ADDRESS_MESSAGE = "Cannot ship to the selected address"


def build_base_card_payment_method(context: SessionContext) -> PaymentMethodDescriptor:
    """Minimal card descriptor: auth methods and networks only."""
    return PaymentMethodDescriptor(
        parameters=CardParameters(
            allowed_auth_methods=list(ALLOWED_CARD_AUTH_METHODS),
            allowed_card_networks=list(context.card_types),
        )
    )


def build_tokenization_specification(
    context: SessionContext,
) -> TokenizationSpecification:
    return TokenizationSpecification(
        parameters=GatewayParameters(
            gateway=context.plugin_id,
            gateway_merchant_id=context.merchant_id,
        )
    )


def build_card_payment_method(context: SessionContext) -> PaymentMethodDescriptor:
    """Full card descriptor: the minimal one plus the tokenization specification."""
    base = build_base_card_payment_method(context)
    return base.model_copy(
        update={"tokenization_specification": build_tokenization_specification(context)}
    )


def build_readiness_request(context: SessionContext) -> IsReadyToPayRequest:
    """Request asking whether the viewer can pay at all; carries no amounts."""
    return IsReadyToPayRequest(
        allowed_payment_methods=[build_base_card_payment_method(context)]
    )


def build_merchant_info(context: SessionContext) -> MerchantInfo:
    return MerchantInfo(
        merchant_id=context.merchant_id,
        merchant_name=context.merchant_name,
    )


def build_shipping_address_parameters(
    context: SessionContext,
) -> ShippingAddressParameters:
    return ShippingAddressParameters(
        allowed_country_codes=list(context.allowed_country_codes),
        phone_number_required=context.phone_number_required,
    )


def build_transaction_request(
    context: SessionContext, transaction_info: TransactionInfo
) -> PaymentDataRequest:
    """Full payment request for opening the sheet.

    Args:
        context: Session context bound at initialization
        transaction_info: Pricing resolved from the merchant backend

    Returns:
        Request subscribing to shipping address, shipping option and
        authorization callbacks, with shipping required
    """
    return PaymentDataRequest(
        allowed_payment_methods=[build_card_payment_method(context)],
        transaction_info=transaction_info,
        merchant_info=build_merchant_info(context),
        callback_intents=[intent.value for intent in SUBSCRIBED_CALLBACK_INTENTS],
        shipping_address_required=True,
        shipping_address_parameters=build_shipping_address_parameters(context),
        shipping_option_required=True,
    )


def build_prefetch_request(context: SessionContext) -> PaymentDataRequest:
    """Transaction request with placeholder pricing, used to warm the provider cache.

    Transaction info must be present but does not affect the cache, so it is
    marked ``NOT_CURRENTLY_KNOWN`` instead of being fetched.
    """
    return build_transaction_request(
        context, TransactionInfo.not_currently_known(context.currency_code)
    )


def build_unserviceable_address_error() -> PaymentDataError:
    return PaymentDataError(
        reason=UNSERVICEABLE_ADDRESS_REASON,
        message=UNSERVICEABLE_ADDRESS_MESSAGE,
        intent=CallbackIntent.SHIPPING_ADDRESS_CHANGED.value,
    )
