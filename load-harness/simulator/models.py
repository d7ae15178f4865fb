from dataclasses import dataclass
from typing import Optional

DEFAULT_PROFILE_NAME = "Default"
UNKNOWN_PROFILE_NAME = "Unknown"


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Profile:
    """
    Bundled client identity applied to one session.
    Drawn by value from the fixed catalog; never mutated.
    """
    name: str
    user_agent: str
    viewport: Viewport
    accept_language: str
    timezone: str
    location: GeoLocation


@dataclass(frozen=True)
class SessionConfig:
    """
    Read-only per-run settings every Session Driver receives.
    """
    target_url: str
    navigation_timeout_ms: int
    max_additional_hops: int
    simulate_profile: bool


@dataclass(frozen=True)
class Session:
    """
    One simulated user's run, created when the Session Driver starts it.
    The browser resources behind it belong to the Session Driver alone.
    """
    user_id: int
    profile: Optional[Profile]
    started_at: float

    @property
    def profile_name(self) -> str:
        return self.profile.name if self.profile is not None else DEFAULT_PROFILE_NAME


@dataclass(frozen=True)
class NavLink:
    """Resolved URL and visible text of one candidate link. Scoped to one hop."""
    url: str
    text: str


@dataclass(frozen=True)
class Result:
    """
    Terminal outcome of one session.
    Invariant: exactly one Result exists per spawned session.
    """
    user_id: int
    success: bool
    load_time_ms: int = 0
    error_message: Optional[str] = None
    screenshot_path: Optional[str] = None
    profile_name: str = DEFAULT_PROFILE_NAME
    hops_completed: int = 0

    @classmethod
    def crashed(cls, user_id: int, reason: str) -> "Result":
        """Failure record for a session whose execution unit died before reporting."""
        return cls(
            user_id=user_id,
            success=False,
            error_message=f"Session crashed: {reason}",
            profile_name=UNKNOWN_PROFILE_NAME,
        )
