"""Negotiation domain entities: surfaces, session context, states and outcomes."""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class CheckoutSurface(str, Enum):
    """The checkout region a page can bind, in detection order."""

    PRODUCT = "product"
    CART = "cart"
    CHECKOUT = "checkout"

    @property
    def form_selector(self) -> str:
        return _FORM_SELECTORS[self]

    @property
    def region_selector(self) -> str:
        """Selector of the element that receives banners and the busy overlay."""
        return _REGION_SELECTORS[self]


_FORM_SELECTORS = {
    CheckoutSurface.PRODUCT: "form.cart",
    CheckoutSurface.CART: "form.woocommerce-cart-form",
    CheckoutSurface.CHECKOUT: "form.woocommerce-checkout",
}

# The cart form is bound through its enclosing container
_REGION_SELECTORS = {
    CheckoutSurface.PRODUCT: "form.cart",
    CheckoutSurface.CART: "div.woocommerce",
    CheckoutSurface.CHECKOUT: "form.woocommerce-checkout",
}


class PageLayout(BaseModel):
    """Snapshot of which checkout forms are present on the page."""

    model_config = ConfigDict(frozen=True)

    present_selectors: FrozenSet[str] = frozenset()

    @classmethod
    def with_forms(cls, *selectors: str) -> "PageLayout":
        return cls(present_selectors=frozenset(selectors))

    def has(self, selector: str) -> bool:
        return selector in self.present_selectors


def detect_checkout_surface(page: PageLayout) -> Optional[CheckoutSurface]:
    """Return the first checkout surface present on the page, if any.

    Surfaces are mutually exclusive: product wins over cart, cart wins over
    checkout. ``None`` means the page has nothing to negotiate for.
    """
    for surface in CheckoutSurface:
        if page.has(surface.form_selector):
            return surface
    return None


class CallbackIntent(str, Enum):
    """Callback intents the provider may fire during a session."""

    SHIPPING_ADDRESS_CHANGED = "SHIPPING_ADDRESS"
    SHIPPING_OPTION_CHANGED = "SHIPPING_OPTION"
    PAYMENT_AUTHORIZED = "PAYMENT_AUTHORIZATION"


class NegotiationState(str, Enum):
    IDLE = "idle"
    READY_CHECK = "ready_check"
    BUTTON_SHOWN = "button_shown"
    SHEET_OPEN = "sheet_open"
    SHIPPING_ROUND_TRIP = "shipping_round_trip"
    AUTHORIZING = "authorizing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[NegotiationState, FrozenSet[NegotiationState]] = {
    NegotiationState.IDLE: frozenset({NegotiationState.READY_CHECK}),
    NegotiationState.READY_CHECK: frozenset(
        {NegotiationState.BUTTON_SHOWN, NegotiationState.IDLE}
    ),
    NegotiationState.BUTTON_SHOWN: frozenset(
        {NegotiationState.SHEET_OPEN, NegotiationState.FAILED}
    ),
    NegotiationState.SHEET_OPEN: frozenset(
        {
            NegotiationState.SHIPPING_ROUND_TRIP,
            NegotiationState.AUTHORIZING,
            NegotiationState.FAILED,
            NegotiationState.BUTTON_SHOWN,
        }
    ),
    NegotiationState.SHIPPING_ROUND_TRIP: frozenset(
        {NegotiationState.SHEET_OPEN, NegotiationState.FAILED}
    ),
    NegotiationState.AUTHORIZING: frozenset(
        {NegotiationState.SUCCEEDED, NegotiationState.FAILED}
    ),
    NegotiationState.SUCCEEDED: frozenset(),
    NegotiationState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({NegotiationState.SUCCEEDED, NegotiationState.FAILED})


class OutcomeStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class OutcomeReason(str, Enum):
    """Reason codes recorded on failed sessions."""

    BACKEND_FAILURE = "BACKEND_FAILURE"
    AUTHORIZATION_FAILURE = "AUTHORIZATION_FAILURE"
    MALFORMED_PROVIDER_PAYLOAD = "MALFORMED_PROVIDER_PAYLOAD"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class NegotiationOutcome(BaseModel):
    """Terminal result of one button-click session."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    redirect_url: Optional[str] = None
    reason: Optional[OutcomeReason] = None

    @classmethod
    def success(cls, redirect_url: str) -> "NegotiationOutcome":
        return cls(status=OutcomeStatus.SUCCESS, redirect_url=redirect_url)

    @classmethod
    def error(cls, reason: OutcomeReason) -> "NegotiationOutcome":
        return cls(status=OutcomeStatus.ERROR, reason=reason)


class NegotiationSession(BaseModel):
    """State of one button-click negotiation.

    The orchestrator threads this object through every continuation of the
    session instead of keeping the state on itself.
    """

    id: UUID = Field(default_factory=uuid4)
    state: NegotiationState = NegotiationState.BUTTON_SHOWN
    outcome: Optional[NegotiationOutcome] = None
    holds_busy: bool = False
    round_trips: int = 0

    @field_serializer("id")
    def serialize_id(self, value: UUID) -> str:
        return str(value)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def is_open(self) -> bool:
        return self.state in {
            NegotiationState.SHEET_OPEN,
            NegotiationState.SHIPPING_ROUND_TRIP,
            NegotiationState.AUTHORIZING,
        }


class SessionContext(BaseModel):
    """Per-page-load merchant context, bound once at initialization."""

    model_config = ConfigDict(frozen=True)

    plugin_id: str
    merchant_id: str
    merchant_name: str
    gateway_id: str
    card_types: tuple[str, ...]
    transaction_info_nonce: str = ""
    recalculate_totals_nonce: str
    process_nonce: str
    generic_error: str
    product_id: Optional[str] = None
    allowed_country_codes: tuple[str, ...] = ("US",)
    phone_number_required: bool = True
    currency_code: str = "USD"
    surface: CheckoutSurface
