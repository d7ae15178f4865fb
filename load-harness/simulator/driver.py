"""
FILE DESCRIPTION: Headless browser capability used by the Session Driver and Behavior Engine.
KEY FUNCTIONS/CLASSES: BrowserDriver, BrowserSession, PlaywrightDriver, PlaywrightSession, DriverError
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

from playwright.sync_api import (
    sync_playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from simulator.core import CHROMIUM_ARGS, logger
from simulator.models import NavLink, Profile, Viewport


class DriverError(Exception):
    """Base browser driver exception."""
    pass


class NavigationTimeoutError(DriverError):
    """Raised when a navigation or click exceeds the navigation timeout."""
    pass


class SessionLaunchError(DriverError):
    """Raised when an isolated browser session cannot be started."""
    pass


class BrowserSession(ABC):
    """
    One isolated browser session (own browser, context and page).
    Contractual Requirements for Implementers:
    - MUST raise NavigationTimeoutError when a bounded wait expires.
    - MUST raise DriverError for every other driver failure.
    - close() MUST release every resource and MUST NOT raise.
    """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @abstractmethod
    def set_cache_enabled(self, enabled: bool) -> None:
        pass

    @abstractmethod
    def goto(self, url: str, timeout_ms: int) -> None:
        """Navigate and wait until the network is idle."""
        pass

    @abstractmethod
    def screenshot(self) -> bytes:
        """Full-page PNG snapshot of the current page."""
        pass

    @abstractmethod
    def query_all(self, selector: str) -> List[Any]:
        pass

    @abstractmethod
    def click(self, element: Any, timeout_ms: int) -> None:
        pass

    @abstractmethod
    def click_and_wait_for_navigation(self, element: Any, timeout_ms: int) -> None:
        pass

    @abstractmethod
    def read_link(self, element: Any) -> NavLink:
        pass

    @abstractmethod
    def viewport_height(self) -> int:
        pass

    @abstractmethod
    def scroll_by(self, pixels: int) -> None:
        pass

    @abstractmethod
    def pause(self, ms: float) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class BrowserDriver(ABC):
    """
    Factory for isolated sessions. One call per simulated user.
    Contractual Requirements for Implementers:
    - With a profile, the session MUST carry its user agent, viewport, Accept-Language,
      timezone and geolocation (granted for `origin` only) before the first navigation.
    - Without a profile, only `default_viewport` is applied.
    """

    @abstractmethod
    def launch(self, profile: Optional[Profile], origin: str,
               default_viewport: Viewport) -> BrowserSession:
        """Raises SessionLaunchError when no session can be started."""
        pass


@contextmanager
def _translated(action: str):
    # Playwright's TimeoutError subclasses its Error, so it is checked first
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise NavigationTimeoutError(f"{action} timed out: {e.message}") from e
    except PlaywrightError as e:
        raise DriverError(f"{action} failed: {e.message}") from e


_READ_LINK_JS = "el => ({url: el.href || '', text: (el.innerText || '').trim()})"


def context_options(profile: Optional[Profile], default_viewport: Viewport) -> Dict[str, Any]:
    """Keyword arguments for browser.new_context() carrying the client identity."""
    if profile is None:
        return {"viewport": {"width": default_viewport.width, "height": default_viewport.height}}
    return {
        "user_agent": profile.user_agent,
        "viewport": {"width": profile.viewport.width, "height": profile.viewport.height},
        "locale": profile.accept_language.split(",")[0].strip(),
        "extra_http_headers": {"Accept-Language": profile.accept_language},
        "timezone_id": profile.timezone,
        "geolocation": {
            "latitude": profile.location.latitude,
            "longitude": profile.location.longitude,
        },
    }


def _pass_through(route):
    route.continue_()


class PlaywrightSession(BrowserSession):
    """
    FLOW: Owns a dedicated Playwright instance for the calling thread -> Browser ->
    Context configured with the client identity -> Single page driven by the Behavior Engine.
    """

    def __init__(self, playwright, browser, context, page):
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._closed = False

    def set_cache_enabled(self, enabled):
        # Playwright bypasses the HTTP cache while any route is registered
        with _translated("Set cache mode"):
            if enabled:
                self._context.unroute("**/*", _pass_through)
            else:
                self._context.route("**/*", _pass_through)

    def goto(self, url, timeout_ms):
        with _translated(f"Navigation to {url}"):
            self._page.goto(url, wait_until="networkidle", timeout=timeout_ms)

    def screenshot(self):
        with _translated("Screenshot"):
            return self._page.screenshot(full_page=True)

    def query_all(self, selector):
        with _translated(f"Query {selector}"):
            return self._page.query_selector_all(selector)

    def click(self, element, timeout_ms):
        with _translated("Click"):
            element.click(timeout=timeout_ms)

    def click_and_wait_for_navigation(self, element, timeout_ms):
        with _translated("Link navigation"):
            with self._page.expect_navigation(wait_until="networkidle", timeout=timeout_ms):
                element.click(timeout=timeout_ms)

    def read_link(self, element):
        with _translated("Read link"):
            data = element.evaluate(_READ_LINK_JS)
        return NavLink(url=data.get("url") or "", text=data.get("text") or "")

    def viewport_height(self):
        with _translated("Read viewport height"):
            return int(self._page.evaluate("() => window.innerHeight"))

    def scroll_by(self, pixels):
        with _translated("Scroll"):
            self._page.evaluate("dy => window.scrollBy(0, dy)", pixels)

    def pause(self, ms):
        with _translated("Wait"):
            self._page.wait_for_timeout(ms)

    def close(self):
        if self._closed:
            return
        self._closed = True
        for name, release in (
            ("context", self._context.close),
            ("browser", self._browser.close),
            ("playwright", self._playwright.stop),
        ):
            try:
                release()
            except Exception as e:
                logger.warning(f"[DRIVER] Failed to release {name}: {e}")


class PlaywrightDriver(BrowserDriver):
    """
    Launches one browser per session. Each calling thread gets its own
    Playwright instance, which keeps the sync API off shared greenlets.
    """

    def __init__(self, headless: bool = True, launch_args: Optional[Sequence[str]] = None,
                 browser_type: str = "chromium"):
        self.headless = headless
        self.launch_args = list(launch_args if launch_args is not None else CHROMIUM_ARGS)
        self.browser_type = browser_type

    def launch(self, profile, origin, default_viewport) -> PlaywrightSession:
        playwright = None
        browser = None
        try:
            playwright = sync_playwright().start()
            launcher = getattr(playwright, self.browser_type)
            args = self.launch_args if self.browser_type == "chromium" else []
            browser = launcher.launch(headless=self.headless, args=args)
            context = browser.new_context(**context_options(profile, default_viewport))
            if profile is not None:
                context.grant_permissions(["geolocation"], origin=origin)
            page = context.new_page()
            return PlaywrightSession(playwright, browser, context, page)
        except Exception as e:
            if browser is not None:
                try:
                    browser.close()
                except Exception as close_err:
                    logger.warning(f"[DRIVER] Failed to close browser after launch error: {close_err}")
            if playwright is not None:
                try:
                    playwright.stop()
                except Exception as stop_err:
                    logger.warning(f"[DRIVER] Failed to stop Playwright after launch error: {stop_err}")
            raise SessionLaunchError(f"Browser launch failed: {e}") from e
