"""Data Transfer Objects exchanged with the wallet provider and the merchant backend.

Field names follow Python conventions; the provider's camelCase wire names
are carried as aliases. Serialize with ``model_dump(by_alias=True,
exclude_none=True)`` before handing a DTO to provider code.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

API_VERSION = 2
API_VERSION_MINOR = 0

TotalPriceStatus = Literal["FINAL", "ESTIMATED", "NOT_CURRENTLY_KNOWN"]
TransactionState = Literal["SUCCESS", "ERROR"]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Payment method descriptors
# ---------------------------------------------------------------------------


class CardParameters(_WireModel):
    allowed_auth_methods: list[str] = Field(alias="allowedAuthMethods")
    allowed_card_networks: list[str] = Field(alias="allowedCardNetworks")


class GatewayParameters(_WireModel):
    gateway: str
    gateway_merchant_id: str = Field(alias="gatewayMerchantId")


class TokenizationSpecification(_WireModel):
    type: Literal["PAYMENT_GATEWAY"] = "PAYMENT_GATEWAY"
    parameters: GatewayParameters


class PaymentMethodDescriptor(_WireModel):
    """Card payment method; the full form carries a tokenization specification."""

    type: Literal["CARD"] = "CARD"
    parameters: CardParameters
    tokenization_specification: Optional[TokenizationSpecification] = Field(
        None, alias="tokenizationSpecification"
    )


class MerchantInfo(_WireModel):
    merchant_id: str = Field(alias="merchantId")
    merchant_name: str = Field(alias="merchantName")


class ShippingAddressParameters(_WireModel):
    allowed_country_codes: list[str] = Field(alias="allowedCountryCodes")
    phone_number_required: bool = Field(alias="phoneNumberRequired")


# ---------------------------------------------------------------------------
# Transaction info and shipping options
# ---------------------------------------------------------------------------


class DisplayItem(_WireModel):
    label: str
    type: str
    price: str
    status: Optional[str] = None


class TransactionInfo(_WireModel):
    """Amount, currency and status of the transaction shown on the sheet.

    The backend may name the amount ``amount`` and the currency ``currency``;
    both are accepted on input and always written out with the provider's
    field names.
    """

    total_price_status: TotalPriceStatus = Field(
        "FINAL",
        validation_alias=AliasChoices("totalPriceStatus", "total_price_status", "status"),
        serialization_alias="totalPriceStatus",
    )
    total_price: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("totalPrice", "total_price", "amount"),
        serialization_alias="totalPrice",
    )
    currency_code: str = Field(
        validation_alias=AliasChoices("currencyCode", "currency_code", "currency"),
        serialization_alias="currencyCode",
    )
    country_code: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("countryCode", "country_code"),
        serialization_alias="countryCode",
    )
    total_price_label: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("totalPriceLabel", "total_price_label"),
        serialization_alias="totalPriceLabel",
    )
    display_items: Optional[list[DisplayItem]] = Field(
        None,
        validation_alias=AliasChoices("displayItems", "display_items"),
        serialization_alias="displayItems",
    )

    @model_validator(mode="after")
    def _require_price_when_final(self) -> "TransactionInfo":
        if self.total_price_status != "NOT_CURRENTLY_KNOWN" and not self.total_price:
            raise ValueError("totalPrice is required unless the status is NOT_CURRENTLY_KNOWN")
        return self

    @classmethod
    def not_currently_known(cls, currency_code: str) -> "TransactionInfo":
        return cls(total_price_status="NOT_CURRENTLY_KNOWN", currency_code=currency_code)


class ShippingOption(_WireModel):
    id: str
    label: str
    description: Optional[str] = None


class ShippingOptionParameters(_WireModel):
    default_selected_option_id: Optional[str] = Field(
        None, alias="defaultSelectedOptionId"
    )
    shipping_options: list[ShippingOption] = Field(alias="shippingOptions")


# ---------------------------------------------------------------------------
# Provider requests
# ---------------------------------------------------------------------------


class IsReadyToPayRequest(_WireModel):
    api_version: int = Field(API_VERSION, alias="apiVersion")
    api_version_minor: int = Field(API_VERSION_MINOR, alias="apiVersionMinor")
    allowed_payment_methods: list[PaymentMethodDescriptor] = Field(
        alias="allowedPaymentMethods"
    )


class IsReadyToPayResponse(_WireModel):
    result: bool


class PaymentDataRequest(_WireModel):
    api_version: int = Field(API_VERSION, alias="apiVersion")
    api_version_minor: int = Field(API_VERSION_MINOR, alias="apiVersionMinor")
    allowed_payment_methods: list[PaymentMethodDescriptor] = Field(
        alias="allowedPaymentMethods"
    )
    transaction_info: TransactionInfo = Field(alias="transactionInfo")
    merchant_info: MerchantInfo = Field(alias="merchantInfo")
    callback_intents: list[str] = Field(alias="callbackIntents")
    shipping_address_required: bool = Field(True, alias="shippingAddressRequired")
    shipping_address_parameters: ShippingAddressParameters = Field(
        alias="shippingAddressParameters"
    )
    shipping_option_required: bool = Field(True, alias="shippingOptionRequired")


# ---------------------------------------------------------------------------
# Provider callbacks
# ---------------------------------------------------------------------------


class IntermediateAddress(_WireModel):
    """Partial shipping address the provider shares before authorization."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    country_code: Optional[str] = Field(None, alias="countryCode")
    postal_code: Optional[str] = Field(None, alias="postalCode")
    administrative_area: Optional[str] = Field(None, alias="administrativeArea")
    locality: Optional[str] = None


class SelectionOptionData(_WireModel):
    id: str


class IntermediatePaymentData(_WireModel):
    callback_trigger: Literal["INITIALIZE", "SHIPPING_ADDRESS", "SHIPPING_OPTION"] = (
        Field(alias="callbackTrigger")
    )
    shipping_address: Optional[IntermediateAddress] = Field(
        None, alias="shippingAddress"
    )
    shipping_option_data: Optional[SelectionOptionData] = Field(
        None, alias="shippingOptionData"
    )

    @model_validator(mode="after")
    def _require_option_on_option_change(self) -> "IntermediatePaymentData":
        if self.callback_trigger == "SHIPPING_OPTION" and self.shipping_option_data is None:
            raise ValueError("shippingOptionData is required for SHIPPING_OPTION")
        return self


class PaymentData(_WireModel):
    """Opaque payment payload returned once the shopper approves payment."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    api_version: Optional[int] = Field(None, alias="apiVersion")
    api_version_minor: Optional[int] = Field(None, alias="apiVersionMinor")
    payment_method_data: dict[str, Any] = Field(alias="paymentMethodData")

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), separators=(",", ":"))


class PaymentDataError(_WireModel):
    reason: str
    message: str
    intent: str


class PaymentDataRequestUpdate(_WireModel):
    new_transaction_info: Optional[TransactionInfo] = Field(
        None, alias="newTransactionInfo"
    )
    new_shipping_option_parameters: Optional[ShippingOptionParameters] = Field(
        None, alias="newShippingOptionParameters"
    )
    error: Optional[PaymentDataError] = None


class AuthorizationResult(_WireModel):
    transaction_state: TransactionState = Field(alias="transactionState")
    error: Optional[PaymentDataError] = None


# ---------------------------------------------------------------------------
# Merchant backend
# ---------------------------------------------------------------------------


class BackendEnvelope(BaseModel):
    """``{success, data}`` envelope every backend endpoint answers with."""

    success: bool
    data: Any = None

    def payload(self) -> Any:
        """Return ``data``, decoding it first when the backend sent a JSON string."""
        if isinstance(self.data, str):
            try:
                return json.loads(self.data)
            except ValueError:
                return self.data
        return self.data

    def failure_message(self) -> str:
        payload = self.payload()
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        if isinstance(payload, str) and payload:
            return payload
        return "no message"


class ShippingTotals(_WireModel):
    """Recalculated totals and the shipping options available for an address."""

    new_transaction_info: Optional[TransactionInfo] = Field(
        None, alias="newTransactionInfo"
    )
    new_shipping_option_parameters: ShippingOptionParameters = Field(
        alias="newShippingOptionParameters"
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_shipping_options(cls, data: Any) -> Any:
        if (
            isinstance(data, dict)
            and "newShippingOptionParameters" not in data
            and "new_shipping_option_parameters" not in data
            and "shippingOptions" in data
        ):
            data = dict(data)
            data["newShippingOptionParameters"] = {
                "shippingOptions": data.pop("shippingOptions"),
                "defaultSelectedOptionId": data.pop("defaultSelectedOptionId", None),
            }
        return data

    @property
    def shipping_options(self) -> list[ShippingOption]:
        return self.new_shipping_option_parameters.shipping_options

    def to_update(self) -> PaymentDataRequestUpdate:
        return PaymentDataRequestUpdate(
            new_transaction_info=self.new_transaction_info,
            new_shipping_option_parameters=self.new_shipping_option_parameters,
        )


class PaymentRedirect(BaseModel):
    redirect: str = Field(..., min_length=1)
