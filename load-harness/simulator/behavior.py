"""
FILE DESCRIPTION: Randomized in-page interaction and bounded multi-hop link navigation.
KEY FUNCTIONS/CLASSES: BehaviorEngine, LinkPolicy, NAV_SELECTORS
"""

import random
from typing import List, Optional, Sequence, Tuple

from simulator.core import logger
from simulator.driver import BrowserSession, DriverError
from simulator.models import NavLink, SessionConfig
from simulator.sink import FileSink

# Ordered most to least specific. The first selector with matches wins.
NAV_SELECTORS = (
    "nav a[href]",
    ".nav a[href]",
    ".navigation a[href]",
    ".menu a[href]",
    "header a[href]",
    ".header a[href]",
    "footer a[href]",
    ".footer a[href]",
    ".sidebar a[href]",
    ".main-menu a[href]",
    ".elementor-nav-menu a[href]",  # Elementor (WordPress)
    ".menu-item a[href]",           # WordPress menu items
    ".page-item a[href]",           # WordPress page items
    ".cat-item a[href]",            # WordPress category items
)

CLICKABLE_SELECTOR = "button:not([disabled]), a:not([disabled])"

# Wait windows in milliseconds, [low, high)
READ_WAIT_MS = (1000, 5000)
POST_SCROLL_WAIT_MS = (500, 2500)
POST_CLICK_WAIT_MS = (1000, 4000)
HOP_READ_WAIT_MS = (1000, 3000)
HOP_POST_SCROLL_WAIT_MS = (500, 2500)
FINAL_WAIT_MS = (500, 2500)


class LinkPolicy:
    """
    Rejects links that would not produce a real page navigation.
    Markers are matched anywhere in the resolved URL since a bare "#" href
    resolves to "<page>#".
    """
    BLOCKED_MARKERS = ("javascript:", "#", "mailto:", "tel:")

    @classmethod
    def is_navigable(cls, link: NavLink) -> bool:
        if not link.url or not link.text:
            return False
        return not any(marker in link.url for marker in cls.BLOCKED_MARKERS)


class BehaviorEngine:
    """
    FLOW: Local interaction (read, scroll, speculative click) -> Discover navigation links ->
    Visit 1..max_hops random links with a snapshot and short interaction per page -> Final settle wait.
    """

    def __init__(self, config: SessionConfig, sink: FileSink, rng: Optional[random.Random] = None,
                 selectors: Sequence[str] = NAV_SELECTORS):
        self.config = config
        self.sink = sink
        self.rng = rng or random.Random()
        self.selectors = tuple(selectors)

    def log(self, level, user_id, msg):
        getattr(logger, level)(msg, extra={'context': f"User-{user_id}"})

    def _wait(self, session: BrowserSession, window: Tuple[int, int]):
        session.pause(self.rng.uniform(*window))

    def _scroll(self, session: BrowserSession):
        height = session.viewport_height()
        offset = self.rng.randrange(height) if height > 0 else 0
        session.scroll_by(offset)

    def simulate(self, session: BrowserSession, user_id: int) -> int:
        """Returns the number of additional pages visited."""
        self.interact(session, user_id)
        hops = self.navigate(session, user_id)
        self._wait(session, FINAL_WAIT_MS)
        return hops

    def interact(self, session: BrowserSession, user_id: int) -> bool:
        """
        Read, scroll, then click one random clickable element.
        Returns True when a click landed. Click failures never fail the session.
        """
        self._wait(session, READ_WAIT_MS)
        self._scroll(session)
        self._wait(session, POST_SCROLL_WAIT_MS)

        clickables = session.query_all(CLICKABLE_SELECTOR)
        if not clickables:
            return False

        target = self.rng.choice(clickables)
        try:
            session.click(target, self.config.navigation_timeout_ms)
        except DriverError as e:
            self.log("debug", user_id, f"Speculative click skipped: {e}")
            return False

        self._wait(session, POST_CLICK_WAIT_MS)
        return True

    def discover_links(self, session: BrowserSession, user_id: Optional[int] = None) -> List:
        """First selector yielding at least one element becomes the pool. Selectors are never merged."""
        for selector in self.selectors:
            links = session.query_all(selector)
            if links:
                if user_id is not None:
                    self.log("info", user_id,
                             f"Found {len(links)} navigation links using selector: {selector}")
                return list(links)
        return []

    def navigate(self, session: BrowserSession, user_id: int, max_hops: Optional[int] = None) -> int:
        """
        Visits up to max_hops additional pages. Invalid picks consume an
        iteration without navigating. Any driver failure ends the loop.
        """
        max_hops = max_hops if max_hops is not None else self.config.max_additional_hops
        timeout_ms = self.config.navigation_timeout_ms

        try:
            pool = self.discover_links(session, user_id)
        except DriverError as e:
            self.log("error", user_id, f"Navigation discovery failed - {e}")
            return 0

        if not pool:
            self.log("info", user_id, "No navigation links found")
            return 0

        budget = self.rng.randint(1, max(1, max_hops))
        self.log("info", user_id, f"Will visit {budget} additional pages")

        visited = 0
        for i in range(budget):
            if not pool:
                break

            element = self.rng.choice(pool)
            try:
                link = session.read_link(element)
                if not LinkPolicy.is_navigable(link):
                    self.log("debug", user_id, f"Skipping link {link.url!r} ({link.text!r})")
                    continue

                self.log("info", user_id, f'Navigating to "{link.text}" ({link.url})')
                session.click_and_wait_for_navigation(element, timeout_ms)
                visited += 1

                self.sink.write_snapshot(user_id, session.screenshot(), hop=i + 1)

                self._wait(session, HOP_READ_WAIT_MS)
                self._scroll(session)
                self._wait(session, HOP_POST_SCROLL_WAIT_MS)

                pool = self.discover_links(session)
            except (DriverError, OSError) as e:
                self.log("error", user_id, f"Navigation failed - {e}")
                break

        return visited
