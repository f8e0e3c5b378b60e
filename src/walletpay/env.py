from __future__ import annotations

import os
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

from .domain.entities import CheckoutSurface, SessionContext

DEFAULT_GENERIC_ERROR = (
    "An error occurred, please try again or try an alternate form of payment"
)


class Settings(BaseModel):
    """Typed handler settings built from environment variables."""

    plugin_id: str
    merchant_id: str
    merchant_name: str
    gateway_id: str
    ajax_url: str
    transaction_info_nonce: str = ""
    recalculate_totals_nonce: str
    process_nonce: str
    button_style: str = "black"
    card_types: list[str] = ["VISA", "MASTERCARD", "AMEX", "DISCOVER"]
    generic_error: str = DEFAULT_GENERIC_ERROR
    product_id: Optional[str] = None

    # Shipping address constraints
    allowed_country_codes: list[str] = ["US"]
    phone_number_required: bool = True

    # Currency used for the placeholder transaction info of the prefetch path
    currency_code: str = "USD"
    prefetch_payment_data: bool = False

    http_timeout: float = 10.0

    @field_validator("ajax_url")
    @classmethod
    def validate_ajax_url(cls, v: str) -> str:
        if not v:
            raise ValueError("AJAX URL cannot be empty")
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("AJAX URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValueError("AJAX URL must include a host")
        return v

    @field_validator("card_types", "allowed_country_codes")
    @classmethod
    def validate_codes(cls, v: list[str]) -> list[str]:
        codes = [code.strip().upper() for code in v if code.strip()]
        if not codes:
            raise ValueError("At least one code is required")
        return codes

    @field_validator("http_timeout")
    @classmethod
    def validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("HTTP timeout must be positive")
        return v

    def session_context(self, surface: CheckoutSurface) -> SessionContext:
        """Bind these settings to the checkout surface detected on the page."""
        return SessionContext(
            plugin_id=self.plugin_id,
            merchant_id=self.merchant_id,
            merchant_name=self.merchant_name,
            gateway_id=self.gateway_id,
            card_types=tuple(self.card_types),
            transaction_info_nonce=self.transaction_info_nonce,
            recalculate_totals_nonce=self.recalculate_totals_nonce,
            process_nonce=self.process_nonce,
            generic_error=self.generic_error,
            product_id=self.product_id,
            allowed_country_codes=tuple(self.allowed_country_codes),
            phone_number_required=self.phone_number_required,
            currency_code=self.currency_code,
            surface=surface,
        )


def _split(value: str) -> list[str]:
    return [item for item in value.split(",") if item.strip()]


def get_settings() -> Settings:
    """Return typed settings instance sourced from env vars."""
    required = {
        "plugin_id": os.environ.get("WALLETPAY_PLUGIN_ID"),
        "merchant_id": os.environ.get("WALLETPAY_MERCHANT_ID"),
        "merchant_name": os.environ.get("WALLETPAY_MERCHANT_NAME"),
        "gateway_id": os.environ.get("WALLETPAY_GATEWAY_ID"),
        "ajax_url": os.environ.get("WALLETPAY_AJAX_URL"),
        "recalculate_totals_nonce": os.environ.get(
            "WALLETPAY_RECALCULATE_TOTALS_NONCE"
        ),
        "process_nonce": os.environ.get("WALLETPAY_PROCESS_NONCE"),
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        env_names = ", ".join(f"WALLETPAY_{name.upper()}" for name in missing)
        raise ValueError(f"{env_names} required")

    return Settings(
        **required,
        transaction_info_nonce=os.environ.get("WALLETPAY_TRANSACTION_INFO_NONCE", ""),
        button_style=os.environ.get("WALLETPAY_BUTTON_STYLE", "black"),
        card_types=_split(
            os.environ.get("WALLETPAY_CARD_TYPES", "VISA,MASTERCARD,AMEX,DISCOVER")
        ),
        generic_error=os.environ.get("WALLETPAY_GENERIC_ERROR", DEFAULT_GENERIC_ERROR),
        product_id=os.environ.get("WALLETPAY_PRODUCT_ID") or None,
        allowed_country_codes=_split(
            os.environ.get("WALLETPAY_ALLOWED_COUNTRY_CODES", "US")
        ),
        phone_number_required=os.environ.get(
            "WALLETPAY_PHONE_NUMBER_REQUIRED", "true"
        ).lower()
        == "true",
        currency_code=os.environ.get("WALLETPAY_CURRENCY_CODE", "USD"),
        prefetch_payment_data=os.environ.get(
            "WALLETPAY_PREFETCH_PAYMENT_DATA", "false"
        ).lower()
        == "true",
        http_timeout=float(os.environ.get("WALLETPAY_HTTP_TIMEOUT", "10.0")),
    )
