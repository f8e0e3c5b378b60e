"""Wallet payment negotiation for storefront checkouts."""

from .application.use_cases.negotiation import NegotiationOrchestrator
from .bootstrap import create_orchestrator, start
from .domain.entities import (
    CallbackIntent,
    CheckoutSurface,
    NegotiationOutcome,
    NegotiationState,
    PageLayout,
)
from .domain.errors import (
    BackendError,
    IntentRejectedError,
    SheetDismissedError,
    StateTransitionError,
    WalletPayError,
)
from .env import Settings, get_settings

__version__ = "0.1.0"

__all__ = [
    "BackendError",
    "CallbackIntent",
    "CheckoutSurface",
    "IntentRejectedError",
    "NegotiationOrchestrator",
    "NegotiationOutcome",
    "NegotiationState",
    "PageLayout",
    "Settings",
    "SheetDismissedError",
    "StateTransitionError",
    "WalletPayError",
    "create_orchestrator",
    "get_settings",
    "start",
]
