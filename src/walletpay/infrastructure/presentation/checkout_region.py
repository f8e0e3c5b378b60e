"""In-memory checkout region recording every visual side effect.

Stands in for the bound DOM region: banners, the busy overlay, the scroll
animation, the mounted button and the final navigation are kept as plain data
so page glue (or a test) can replay or inspect them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ...domain.entities import CheckoutSurface

logger = logging.getLogger(__name__)

BUTTON_CONTAINER_ID = "sv-wc-google-pay-button-container"
ERROR_BANNER_CLASS = "woocommerce-error"
NOTICE_BANNER_CLASS = "woocommerce-message"

SCROLL_OFFSET_PX = 100
SCROLL_DURATION_MS = 1000


@dataclass(frozen=True)
class Banner:
    css_class: str
    messages: tuple[str, ...]


@dataclass(frozen=True)
class ScrollRequest:
    target_selector: str
    offset_px: int
    duration_ms: int


@dataclass
class CheckoutRegion:
    """Presentation adapter bound to one checkout surface."""

    surface: CheckoutSurface
    banners: list[Banner] = field(default_factory=list)
    busy: bool = False
    busy_acquired_count: int = 0
    busy_released_count: int = 0
    scroll_requests: list[ScrollRequest] = field(default_factory=list)
    mounted_buttons: list[Any] = field(default_factory=list)
    navigated_to: Optional[str] = None

    @property
    def selector(self) -> str:
        return self.surface.region_selector

    @property
    def error_banners(self) -> list[Banner]:
        return [b for b in self.banners if b.css_class == ERROR_BANNER_CLASS]

    def add_notice(self, message: str) -> None:
        """Mirror a storefront notice banner shown outside the wallet flow.

        Page glue calls this for notices the store renders itself (coupon
        applied, cart updated) so that ``render_errors`` replaces them along
        with earlier errors.
        """
        self.banners.append(Banner(NOTICE_BANNER_CLASS, (message,)))

    def render_errors(self, messages: Sequence[str]) -> None:
        # Prior errors and notices go away before the new list is prepended
        self.banners = [
            b
            for b in self.banners
            if b.css_class not in {ERROR_BANNER_CLASS, NOTICE_BANNER_CLASS}
        ]
        self.banners.insert(0, Banner(ERROR_BANNER_CLASS, tuple(messages)))
        self.clear_busy()
        self.scroll_requests.append(
            ScrollRequest(self.selector, SCROLL_OFFSET_PX, SCROLL_DURATION_MS)
        )
        logger.debug("Rendered %d error(s) in %s", len(messages), self.selector)

    def set_busy(self) -> None:
        if self.busy:
            return
        self.busy = True
        self.busy_acquired_count += 1

    def clear_busy(self) -> None:
        if not self.busy:
            return
        self.busy = False
        self.busy_released_count += 1

    def mount_button(self, button: Any) -> None:
        self.mounted_buttons.append(button)
        logger.debug("Mounted wallet button into #%s", BUTTON_CONTAINER_ID)

    def navigate(self, url: str) -> None:
        self.navigated_to = url
