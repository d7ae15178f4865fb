"""
Client identity catalog and per-session profile selection.
"""

import random
from typing import Optional, Sequence

from simulator.models import Profile, Viewport, GeoLocation

PROFILE_CATALOG = (
    Profile(
        name="US - Chrome",
        user_agent=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        viewport=Viewport(1920, 1080),
        accept_language="en-US,en;q=0.9",
        timezone="America/New_York",
        location=GeoLocation(40.7128, -74.006),
    ),
    Profile(
        name="UK - Firefox",
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
        viewport=Viewport(1366, 768),
        accept_language="en-GB,en;q=0.5",
        timezone="Europe/London",
        location=GeoLocation(51.5074, -0.1278),
    ),
    Profile(
        name="Germany - Safari",
        user_agent=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/17.2 Safari/605.1.15"
        ),
        viewport=Viewport(1440, 900),
        accept_language="de-DE,de;q=0.9,en;q=0.8",
        timezone="Europe/Berlin",
        location=GeoLocation(52.52, 13.405),
    ),
    Profile(
        name="Japan - Edge",
        user_agent=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0"
        ),
        viewport=Viewport(1536, 864),
        accept_language="ja-JP,ja;q=0.9,en;q=0.8",
        timezone="Asia/Tokyo",
        location=GeoLocation(35.6762, 139.6503),
    ),
    Profile(
        name="Canada - Mobile",
        user_agent=(
            "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
        ),
        viewport=Viewport(390, 844),
        accept_language="en-CA,en;q=0.9",
        timezone="America/Toronto",
        location=GeoLocation(43.6532, -79.3832),
    ),
)

# Used when profile simulation is disabled
DEFAULT_VIEWPORT = Viewport(1920, 1080)


def select_profile(enabled: bool, rng: random.Random,
                   catalog: Sequence[Profile] = PROFILE_CATALOG) -> Optional[Profile]:
    """
    Uniform choice with replacement. Returns None when simulation is disabled,
    in which case the session keeps the driver defaults.
    """
    if not enabled:
        return None
    if not catalog:
        raise ValueError("Profile catalog must contain at least one profile")
    return rng.choice(catalog)
