"""
FILE DESCRIPTION: Lifecycle of one simulated user's browser session.
KEY FUNCTIONS/CLASSES: SessionDriver
"""

import random
import time
from typing import Callable, Optional
from urllib.parse import urlparse

from simulator.behavior import BehaviorEngine
from simulator.core import logger
from simulator.driver import BrowserDriver
from simulator.models import DEFAULT_PROFILE_NAME, Result, Session, SessionConfig
from simulator.profiles import DEFAULT_VIEWPORT, select_profile
from simulator.sink import FileSink


def target_origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


class SessionDriver:
    """
    FLOW: Select profile -> Launch isolated session carrying the profile (or default viewport) ->
    Disable cache -> Timed initial load -> Snapshot -> Behavior Engine -> Release session.

    INVARIANT: run() returns exactly one Result and never raises.
    """

    def __init__(self, driver: BrowserDriver, config: SessionConfig, sink: FileSink,
                 rng_factory: Optional[Callable[[int], random.Random]] = None,
                 clock: Callable[[], float] = time.perf_counter,
                 wall_clock: Callable[[], float] = time.time):
        self.driver = driver
        self.config = config
        self.sink = sink
        self.rng_factory = rng_factory or (lambda user_id: random.Random())
        self.clock = clock
        self.wall_clock = wall_clock

    def log(self, level, user_id, msg):
        getattr(logger, level)(msg, extra={'context': f"User-{user_id}"})

    def start(self, user_id: int, rng: random.Random) -> Session:
        profile = select_profile(self.config.simulate_profile, rng)
        session = Session(user_id=user_id, profile=profile, started_at=self.wall_clock())
        if profile is not None:
            self.log("info", user_id, f'Using profile "{profile.name}"')
        else:
            self.log("info", user_id, "Using default browser settings")
        return session

    def run(self, user_id: int) -> Result:
        rng = self.rng_factory(user_id)
        profile_name = DEFAULT_PROFILE_NAME
        load_time_ms = 0
        hops = 0
        screenshot_path = None

        try:
            session = self.start(user_id, rng)
            profile_name = session.profile_name

            with self.driver.launch(session.profile, target_origin(self.config.target_url),
                                    DEFAULT_VIEWPORT) as browser:
                browser.set_cache_enabled(False)

                started = self.clock()
                browser.goto(self.config.target_url, self.config.navigation_timeout_ms)
                load_time_ms = int(round((self.clock() - started) * 1000))

                screenshot_path = self.sink.write_snapshot(user_id, browser.screenshot())

                behavior = BehaviorEngine(self.config, self.sink, rng)
                hops = behavior.simulate(browser, user_id)

        except Exception as e:
            return Result(
                user_id=user_id,
                success=False,
                load_time_ms=load_time_ms,
                error_message=str(e) or e.__class__.__name__,
                screenshot_path=None,
                profile_name=profile_name,
                hops_completed=hops,
            )

        return Result(
            user_id=user_id,
            success=True,
            load_time_ms=load_time_ms,
            screenshot_path=screenshot_path,
            profile_name=profile_name,
            hops_completed=hops,
        )
