"""Protocol interface for the checkout region's visual side effects."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol, Sequence

if TYPE_CHECKING:
    from ..entities import CheckoutSurface


class PresentationAdapter(Protocol):
    """Side-effecting sink bound to the active checkout region.

    The orchestrator calls these and never depends on a return value.
    """

    def render_errors(self, messages: Sequence[str]) -> None:
        """Replace prior banners with ``messages``, clear busy, scroll into view."""
        ...

    def set_busy(self) -> None: ...

    def clear_busy(self) -> None: ...

    def mount_button(self, button: Any) -> None:
        """Insert the provider button into the fixed button container."""
        ...

    def navigate(self, url: str) -> None: ...


PresentationFactory = Callable[["CheckoutSurface"], PresentationAdapter]
