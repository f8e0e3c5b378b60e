"""Wallet payment negotiation: the state machine driving one page's checkout.

The orchestrator sits between the provider's payment sheet and the merchant
backend. It checks readiness, shows the button, opens the sheet with fresh
pricing, answers shipping callbacks with recalculated totals and finalizes
authorization, resolving every provider callback exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, Mapping, Optional, Type, Union

from prometheus_client import Counter
from pydantic import ValidationError

from ...domain.entities import (
    ALLOWED_TRANSITIONS,
    CallbackIntent,
    NegotiationOutcome,
    NegotiationSession,
    NegotiationState,
    OutcomeReason,
    OutcomeStatus,
    PageLayout,
    SessionContext,
    detect_checkout_surface,
)
from ...domain.errors import (
    BackendError,
    IntentRejectedError,
    SheetDismissedError,
    StateTransitionError,
)
from ...domain.shared import (
    MerchantGatewayProtocol,
    PresentationAdapter,
    PresentationFactory,
    ProviderClientFactory,
    WalletProviderClient,
)
from ...env import Settings
from ..descriptors import (
    build_merchant_info,
    build_prefetch_request,
    build_readiness_request,
    build_transaction_request,
    build_unserviceable_address_error,
)
from ..dtos import (
    AuthorizationResult,
    IntermediatePaymentData,
    IsReadyToPayResponse,
    PaymentData,
    PaymentDataError,
    PaymentDataRequestUpdate,
)

logger = logging.getLogger(__name__)

LOG_PREFIX = "[Wallet Pay]"

GENERIC_ERROR_REASON = "OTHER_ERROR"
AUTHORIZATION_ERROR_REASON = "PAYMENT_DATA_INVALID"

negotiation_sessions_total = Counter(
    "walletpay_negotiation_sessions_total",
    "Wallet negotiation sessions by how they ended",
    ["outcome"],
)
shipping_round_trips_total = Counter(
    "walletpay_shipping_round_trips_total",
    "Shipping recalculation round trips by result",
    ["status"],
)

_TRIGGER_INTENTS = {
    "INITIALIZE": CallbackIntent.SHIPPING_ADDRESS_CHANGED,
    "SHIPPING_ADDRESS": CallbackIntent.SHIPPING_ADDRESS_CHANGED,
    "SHIPPING_OPTION": CallbackIntent.SHIPPING_OPTION_CHANGED,
}


def _check_transition(current: NegotiationState, new: NegotiationState) -> None:
    if new not in ALLOWED_TRANSITIONS[current]:
        raise StateTransitionError(
            f"Invalid transition from {current.value} to {new.value}"
        )


class NegotiationOrchestrator:
    """State machine for wallet payments on one page load.

    Handler phase: ``IDLE -> READY_CHECK -> BUTTON_SHOWN``. Each button click
    then runs a ``NegotiationSession`` through ``SHEET_OPEN ->
    (SHIPPING_ROUND_TRIP)* -> AUTHORIZING -> SUCCEEDED | FAILED``.

    The orchestrator is the ``PaymentDataCallbacks`` implementation handed to
    the provider client factory, so the provider reaches it only through
    ``on_payment_authorized`` and ``on_payment_data_changed``. Callbacks run
    one at a time; a second round trip never starts before the previous one
    resolved.
    """

    def __init__(
        self,
        settings: Settings,
        gateway: MerchantGatewayProtocol,
        provider_factory: ProviderClientFactory,
        presentation_factory: PresentationFactory,
        *,
        owns_gateway: bool = False,
    ) -> None:
        self._settings = settings
        self._gateway = gateway
        self._owns_gateway = owns_gateway
        self._provider_factory = provider_factory
        self._presentation_factory = presentation_factory

        self._state = NegotiationState.IDLE
        self._context: Optional[SessionContext] = None
        self._presentation: Optional[PresentationAdapter] = None
        self._provider: Optional[WalletProviderClient] = None
        self._session: Optional[NegotiationSession] = None

        self._intent_lock = asyncio.Lock()
        self._loaded = asyncio.Event()

    async def aclose(self) -> None:
        """Close the merchant gateway when this orchestrator created it."""
        if self._owns_gateway:
            await self._gateway.aclose()

    async def __aenter__(self) -> "NegotiationOrchestrator":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    # Introspection

    @property
    def state(self) -> NegotiationState:
        """Current state: the open session's if there is one, else the handler's."""
        if self._session is not None:
            return self._session.state
        return self._state

    @property
    def context(self) -> Optional[SessionContext]:
        return self._context

    @property
    def presentation(self) -> Optional[PresentationAdapter]:
        return self._presentation

    @property
    def session(self) -> Optional[NegotiationSession]:
        return self._session

    @property
    def loaded(self) -> bool:
        return self._loaded.is_set()

    async def wait_until_loaded(self) -> None:
        """Block until ``initialize`` has finished, whichever way it went."""
        await self._loaded.wait()

    # Handler lifecycle

    async def initialize(self, page: PageLayout) -> bool:
        """Bind the checkout surface and show the button if the viewer can pay.

        Returns:
            True if the button was shown. False when the page has no checkout
            surface or the viewer cannot pay; neither is an error.
        """
        try:
            if self._context is not None:
                raise StateTransitionError("Handler is already initialized")

            surface = detect_checkout_surface(page)
            if surface is None:
                logger.debug("No checkout surface on page, staying idle")
                return False

            self._context = self._settings.session_context(surface)
            self._presentation = self._presentation_factory(surface)
            self._advance(NegotiationState.READY_CHECK)

            if not await self._check_readiness():
                logger.info("Viewer cannot pay with the wallet, no button shown")
                self._advance(NegotiationState.IDLE)
                return False

            if not self._add_button():
                self._advance(NegotiationState.IDLE)
                return False
            self._advance(NegotiationState.BUTTON_SHOWN)

            if self._settings.prefetch_payment_data:
                await self._prefetch_payment_data()
            return True
        finally:
            self._loaded.set()

    async def _check_readiness(self) -> bool:
        assert self._context is not None
        request = build_readiness_request(self._context)
        try:
            response = await self._get_provider_client().is_ready_to_pay(request)
            return self._readiness_result(response)
        except Exception:
            # Absence of capability is not a failure: log and stay silent
            logger.exception("%s Readiness check failed", LOG_PREFIX)
            return False

    @staticmethod
    def _readiness_result(
        response: Union[IsReadyToPayResponse, Mapping[str, Any]],
    ) -> bool:
        if isinstance(response, IsReadyToPayResponse):
            return response.result
        return IsReadyToPayResponse.model_validate(response).result

    def _add_button(self) -> bool:
        assert self._presentation is not None
        try:
            button = self._get_provider_client().create_button(
                on_click=self.on_button_clicked,
                button_style=self._settings.button_style,
            )
            self._presentation.mount_button(button)
        except Exception:
            logger.exception("%s Could not add the wallet button", LOG_PREFIX)
            return False
        return True

    async def _prefetch_payment_data(self) -> None:
        assert self._context is not None
        try:
            await self._get_provider_client().prefetch_payment_data(
                build_prefetch_request(self._context)
            )
        except Exception:
            logger.warning("%s Prefetching payment data failed", LOG_PREFIX, exc_info=True)

    def _get_provider_client(self) -> WalletProviderClient:
        """Return the provider client, creating it on first use."""
        if self._provider is None:
            assert self._context is not None
            self._provider = self._provider_factory(
                build_merchant_info(self._context), self
            )
        return self._provider

    # Sessions

    async def on_button_clicked(self) -> Optional[NegotiationSession]:
        """Run one negotiation session from button click to sheet close.

        Returns:
            The session, or None when the click was ignored.
        """
        if self._state is not NegotiationState.BUTTON_SHOWN:
            logger.warning("Button activated while handler is %s, ignoring", self._state.value)
            return None
        if self._session is not None:
            logger.warning("A negotiation session is already open, ignoring click")
            return None

        assert self._context is not None
        session = NegotiationSession()
        self._session = session
        self._acquire_busy(session)

        try:
            transaction_info = await self._gateway.fetch_transaction_info(self._context)
        except BackendError as e:
            self._fail_session(session, OutcomeReason.BACKEND_FAILURE, str(e))
            return session
        except Exception as e:
            logger.exception("%s Unexpected error fetching transaction info", LOG_PREFIX)
            self._fail_session(session, OutcomeReason.UNEXPECTED_ERROR, repr(e))
            return session

        request = build_transaction_request(self._context, transaction_info)
        self._advance_session(session, NegotiationState.SHEET_OPEN)

        failure: Optional[Exception] = None
        try:
            await self._get_provider_client().load_payment_data(request)
        except SheetDismissedError:
            logger.info("Payment sheet dismissed by the shopper")
        except Exception as e:
            logger.exception("%s Payment sheet failed", LOG_PREFIX)
            failure = e

        # A callback still in flight owns the session until it resolves.
        async with self._intent_lock:
            if self._session is not session or session.is_terminal:
                return session
            if failure is not None:
                self._fail_session(session, OutcomeReason.UNEXPECTED_ERROR, repr(failure))
            else:
                self._dismiss_session(session)
        return session

    # PaymentDataCallbacks

    async def on_payment_data_changed(
        self, intermediate_payment_data: Mapping[str, Any]
    ) -> PaymentDataRequestUpdate:
        """Answer a shipping address or shipping option change.

        Backend failures resolve with a structured error and leave the session
        open so the shopper can retry. A payload that cannot be interpreted
        fails the session and is rejected back to the provider.

        Raises:
            IntentRejectedError: When the intermediate payload is malformed
        """
        async with self._intent_lock:
            session = self._session
            if session is None or session.state is not NegotiationState.SHEET_OPEN:
                logger.warning("%s Payment data changed outside an open session", LOG_PREFIX)
                return PaymentDataRequestUpdate(
                    error=self._generic_error(CallbackIntent.SHIPPING_ADDRESS_CHANGED)
                )

            try:
                data = IntermediatePaymentData.model_validate(intermediate_payment_data)
            except ValidationError as e:
                error = self._generic_error(CallbackIntent.SHIPPING_ADDRESS_CHANGED)
                self._fail_session(
                    session,
                    OutcomeReason.MALFORMED_PROVIDER_PAYLOAD,
                    f"Malformed intermediate payment data: {e}",
                )
                raise IntentRejectedError(error) from e

            return await self._shipping_round_trip(session, data)

    async def _shipping_round_trip(
        self, session: NegotiationSession, data: IntermediatePaymentData
    ) -> PaymentDataRequestUpdate:
        assert self._context is not None
        intent = _TRIGGER_INTENTS[data.callback_trigger]
        shipping_method_id = ""
        if intent is CallbackIntent.SHIPPING_OPTION_CHANGED and data.shipping_option_data:
            shipping_method_id = data.shipping_option_data.id

        self._advance_session(session, NegotiationState.SHIPPING_ROUND_TRIP)
        session.round_trips += 1

        try:
            totals = await self._gateway.recalculate_totals(
                self._context, data.shipping_address, shipping_method_id
            )
        except BackendError as e:
            logger.error("%s %s", LOG_PREFIX, e)
            update = PaymentDataRequestUpdate(error=self._generic_error(intent))
            status = "backend_error"
        except Exception:
            logger.exception("%s Unexpected error recalculating totals", LOG_PREFIX)
            update = PaymentDataRequestUpdate(error=self._generic_error(intent))
            status = "unexpected_error"
        else:
            if not totals.shipping_options:
                update = PaymentDataRequestUpdate(error=build_unserviceable_address_error())
                status = "unserviceable"
            else:
                update = totals.to_update()
                status = "success"

        self._advance_session(session, NegotiationState.SHEET_OPEN)
        shipping_round_trips_total.labels(status=status).inc()
        return update

    async def on_payment_authorized(
        self, payment_data: Mapping[str, Any]
    ) -> AuthorizationResult:
        """Finalize payment with the backend.

        Always resolves: ``SUCCESS`` schedules navigation to the backend's
        redirect, ``ERROR`` fails the session with the generic banner.
        """
        async with self._intent_lock:
            session = self._session
            if session is None or session.state is not NegotiationState.SHEET_OPEN:
                logger.warning("%s Payment authorized outside an open session", LOG_PREFIX)
                return self._authorization_error()

            try:
                payment = PaymentData.model_validate(payment_data)
            except ValidationError as e:
                self._fail_session(
                    session,
                    OutcomeReason.MALFORMED_PROVIDER_PAYLOAD,
                    f"Malformed payment data: {e}",
                )
                return self._authorization_error()

            assert self._context is not None
            self._advance_session(session, NegotiationState.AUTHORIZING)
            try:
                redirect = await self._gateway.authorize_payment(self._context, payment)
            except BackendError as e:
                self._fail_session(session, OutcomeReason.AUTHORIZATION_FAILURE, str(e))
                return self._authorization_error()
            except Exception as e:
                logger.exception("%s Unexpected error authorizing payment", LOG_PREFIX)
                self._fail_session(session, OutcomeReason.UNEXPECTED_ERROR, repr(e))
                return self._authorization_error()

            self._advance_session(session, NegotiationState.SUCCEEDED)
            session.outcome = NegotiationOutcome.success(redirect.redirect)
            self._end_session(session)
            # Busy stays engaged; the page is about to be left
            self._schedule_navigation(redirect.redirect)
            return AuthorizationResult(transaction_state="SUCCESS")

    # Helpers

    def _advance(self, new_state: NegotiationState) -> None:
        _check_transition(self._state, new_state)
        logger.debug("Handler %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def _advance_session(
        self, session: NegotiationSession, new_state: NegotiationState
    ) -> None:
        _check_transition(session.state, new_state)
        logger.debug(
            "Session %s %s -> %s", session.id, session.state.value, new_state.value
        )
        session.state = new_state

    def _acquire_busy(self, session: NegotiationSession) -> None:
        assert self._presentation is not None
        self._presentation.set_busy()
        session.holds_busy = True

    def _release_busy(self, session: NegotiationSession) -> None:
        assert self._presentation is not None
        if session.holds_busy:
            session.holds_busy = False
            self._presentation.clear_busy()

    def _fail_session(
        self, session: NegotiationSession, reason: OutcomeReason, detail: str
    ) -> None:
        """Terminate ``session`` with the generic message; detail goes to the log only."""
        assert self._context is not None and self._presentation is not None
        logger.error("%s %s", LOG_PREFIX, detail)
        self._advance_session(session, NegotiationState.FAILED)
        session.outcome = NegotiationOutcome.error(reason)
        self._release_busy(session)
        self._presentation.render_errors([self._context.generic_error])
        self._end_session(session)

    def _dismiss_session(self, session: NegotiationSession) -> None:
        self._advance_session(session, NegotiationState.BUTTON_SHOWN)
        self._release_busy(session)
        self._end_session(session)

    def _end_session(self, session: NegotiationSession) -> None:
        if session.outcome is None:
            outcome = "dismissed"
        elif session.outcome.status is OutcomeStatus.SUCCESS:
            outcome = "success"
        else:
            outcome = "error"
        negotiation_sessions_total.labels(outcome=outcome).inc()
        if self._session is session:
            self._session = None

    def _schedule_navigation(self, url: str) -> None:
        """Navigate once the authorization callback has returned its result."""
        assert self._presentation is not None
        asyncio.get_running_loop().call_soon(self._presentation.navigate, url)

    def _generic_error(self, intent: CallbackIntent) -> PaymentDataError:
        return PaymentDataError(
            reason=GENERIC_ERROR_REASON,
            message=self._settings.generic_error,
            intent=intent.value,
        )

    def _authorization_error(self) -> AuthorizationResult:
        return AuthorizationResult(
            transaction_state="ERROR",
            error=PaymentDataError(
                reason=AUTHORIZATION_ERROR_REASON,
                message=self._settings.generic_error,
                intent=CallbackIntent.PAYMENT_AUTHORIZED.value,
            ),
        )
