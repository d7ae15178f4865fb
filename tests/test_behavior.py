import random
import tempfile
import unittest
from pathlib import Path

from fakes import FakeElement, FakeSession
from simulator.behavior import (
    CLICKABLE_SELECTOR,
    NAV_SELECTORS,
    BehaviorEngine,
    LinkPolicy,
)
from simulator.driver import DriverError, NavigationTimeoutError
from simulator.models import NavLink, SessionConfig
from simulator.sink import FileSink


def make_config(max_hops=3):
    return SessionConfig(
        target_url="https://example.com/",
        navigation_timeout_ms=5000,
        max_additional_hops=max_hops,
        simulate_profile=False,
    )


class TestLinkPolicy(unittest.TestCase):
    def test_rejects_non_navigating_links(self):
        for url in ("javascript:void(0)", "#", "https://example.com/#", "mailto:a@b.com", "tel:+15551234", ""):
            with self.subTest(url=url):
                self.assertFalse(LinkPolicy.is_navigable(NavLink(url=url, text="Contact")))

    def test_rejects_empty_text(self):
        self.assertFalse(LinkPolicy.is_navigable(NavLink(url="https://example.com/about", text="")))

    def test_accepts_regular_link(self):
        self.assertTrue(LinkPolicy.is_navigable(NavLink(url="https://example.com/about", text="About")))


class BehaviorTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.sink = FileSink(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def engine(self, seed=0, max_hops=3):
        return BehaviorEngine(make_config(max_hops), self.sink, random.Random(seed))

    def landed(self, session):
        session.goto("https://example.com/", 5000)
        return session


class TestInteract(BehaviorTestCase):
    def test_click_failure_does_not_raise(self):
        button = FakeElement(url="", text="Buy")
        session = self.landed(FakeSession(
            pages={"home": {CLICKABLE_SELECTOR: [button]}},
            click_error=DriverError("Element is not visible"),
        ))

        clicked = self.engine().interact(session, user_id=1)

        self.assertFalse(clicked)
        # read wait and post-scroll wait only
        self.assertEqual(len(session.pauses), 2)

    def test_wait_and_scroll_bounds(self):
        button = FakeElement(url="", text="Menu")
        for seed in range(30):
            session = self.landed(FakeSession(pages={"home": {CLICKABLE_SELECTOR: [button]}}, height=600))
            self.assertTrue(self.engine(seed).interact(session, user_id=1))

            read, settle, after_click = session.pauses
            self.assertTrue(1000 <= read < 5000)
            self.assertTrue(500 <= settle < 2500)
            self.assertTrue(1000 <= after_click < 4000)
            self.assertTrue(0 <= session.scrolls[0] < 600)
            self.assertEqual(session.clicks, [button])

    def test_no_clickables(self):
        session = self.landed(FakeSession(pages={"home": {}}))
        self.assertFalse(self.engine().interact(session, user_id=1))
        self.assertEqual(session.clicks, [])


class TestNavigate(BehaviorTestCase):
    def test_no_navigation_links_ends_with_zero_hops(self):
        session = self.landed(FakeSession(pages={"home": {}}))

        hops = self.engine().navigate(session, user_id=1)

        self.assertEqual(hops, 0)
        self.assertEqual(session.queries, list(NAV_SELECTORS))
        self.assertEqual(session.navigations, [])

    def test_first_matching_selector_wins(self):
        nav_link = FakeElement("https://example.com/a", "A", target="empty")
        menu_link = FakeElement("https://example.com/b", "B", target="empty")
        session = self.landed(FakeSession(pages={
            "home": {".menu a[href]": [menu_link], "nav a[href]": [nav_link]},
            "empty": {},
        }))

        pool = self.engine().discover_links(session, user_id=1)

        self.assertEqual(pool, [nav_link])
        self.assertEqual(session.queries, ["nav a[href]"])

    def test_never_exceeds_max_hops(self):
        loop = FakeElement("https://example.com/loop", "Loop", target="home")
        pages = {"home": {"nav a[href]": [loop]}}
        for seed in range(40):
            session = self.landed(FakeSession(pages=pages))
            hops = self.engine(seed, max_hops=3).navigate(session, user_id=1)
            self.assertTrue(1 <= hops <= 3)
            self.assertEqual(len(session.navigations), hops)

    def test_invalid_links_are_never_navigated(self):
        invalid = [
            FakeElement("javascript:void(0)", "Open"),
            FakeElement("https://example.com/#", "Top"),
            FakeElement("mailto:a@b.com", "Mail"),
            FakeElement("tel:+15551234", "Call"),
            FakeElement("https://example.com/about", ""),
        ]
        for seed in range(20):
            session = self.landed(FakeSession(pages={"home": {"nav a[href]": invalid}}))
            hops = self.engine(seed, max_hops=5).navigate(session, user_id=1)
            self.assertEqual(hops, 0)
            self.assertEqual(session.navigations, [])

    def test_navigation_failure_stops_loop(self):
        link = FakeElement("https://example.com/about", "About", target="home")
        session = self.landed(FakeSession(
            pages={"home": {"nav a[href]": [link]}},
            navigation_error=NavigationTimeoutError("Link navigation timed out"),
        ))

        hops = self.engine(max_hops=3).navigate(session, user_id=1)

        self.assertEqual(hops, 0)
        self.assertEqual(list(Path(self.tmp.name).iterdir()), [])

    def test_hop_snapshots_are_keyed_by_user_and_hop(self):
        about = FakeElement("https://example.com/about", "About", target="about")
        session = self.landed(FakeSession(pages={
            "home": {"nav a[href]": [about]},
            "about": {},
        }))

        hops = self.engine(max_hops=1).navigate(session, user_id=7)

        self.assertEqual(hops, 1)
        self.assertTrue((Path(self.tmp.name) / "user_7_page1.png").exists())

    def test_empty_refreshed_pool_ends_loop(self):
        about = FakeElement("https://example.com/about", "About", target="about")
        session = self.landed(FakeSession(pages={"home": {"nav a[href]": [about]}, "about": {}}))

        hops = self.engine(seed=3, max_hops=10).navigate(session, user_id=1)

        self.assertEqual(hops, 1)
        self.assertEqual(session.navigations, ["https://example.com/about"])


class TestSimulate(BehaviorTestCase):
    def test_simulate_runs_interaction_navigation_and_final_wait(self):
        session = self.landed(FakeSession(pages={"home": {}}))

        hops = self.engine().simulate(session, user_id=1)

        self.assertEqual(hops, 0)
        # read, post-scroll, final settle
        self.assertEqual(len(session.pauses), 3)
        self.assertTrue(500 <= session.pauses[-1] < 2500)


if __name__ == "__main__":
    unittest.main()
