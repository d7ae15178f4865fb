"""
FILE DESCRIPTION: Foundational module for run configuration and logging.
KEY FUNCTIONS/CLASSES: RunConfig, load_config, ConfigError, HarnessFormatter, setup_logger
"""

import logging
import sys
import os
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse
from dotenv import load_dotenv

from simulator.models import SessionConfig

# === CONFIGURATION SECTION ===

# Load .env from the repository root
load_dotenv(Path(__file__).resolve().parents[2] / '.env')

DEFAULT_TARGET_URL = "https://www.example.com/"
DEFAULT_CONCURRENT_USERS = 10
DEFAULT_OUTPUT_DIR = "./test-results"

# Navigation timeout (milliseconds)
DEFAULT_NAVIGATION_TIMEOUT_MS = 30000
DEFAULT_HEADLESS = True

# Max number of additional pages to visit per user
DEFAULT_MAX_ADDITIONAL_HOPS = 3
DEFAULT_SIMULATE_PROFILES = True

CHROMIUM_ARGS = [
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
    "--no-sandbox",
    "--disable-dev-shm-usage",
]

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised when the run configuration cannot be resolved."""
    pass


@dataclass(frozen=True)
class RunConfig:
    """
    Process-wide run configuration. Resolved once at start, never mutated.
    """
    target_url: str = DEFAULT_TARGET_URL
    concurrent_users: int = DEFAULT_CONCURRENT_USERS
    output_dir: str = DEFAULT_OUTPUT_DIR
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS
    headless: bool = DEFAULT_HEADLESS
    max_additional_hops: int = DEFAULT_MAX_ADDITIONAL_HOPS
    simulate_profiles: bool = DEFAULT_SIMULATE_PROFILES
    seed: Optional[int] = None

    def session_config(self) -> SessionConfig:
        return SessionConfig(
            target_url=self.target_url,
            navigation_timeout_ms=self.navigation_timeout_ms,
            max_additional_hops=self.max_additional_hops,
            simulate_profile=self.simulate_profiles,
        )


def _env_bool(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _env_int(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def validate_config(config: RunConfig) -> RunConfig:
    parsed = urlparse(config.target_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Target URL must be an absolute http(s) URL: {config.target_url!r}")
    if config.concurrent_users < 1:
        raise ConfigError("Concurrent users must be at least 1")
    if config.max_additional_hops < 1:
        raise ConfigError("Max additional hops must be at least 1")
    if config.navigation_timeout_ms <= 0:
        raise ConfigError("Navigation timeout must be positive")
    if not config.output_dir:
        raise ConfigError("Output directory must not be empty")
    return config


def load_config(**overrides) -> RunConfig:
    """
    FLOW: Starts from module defaults -> Applies LOADTEST_* environment variables ->
    Applies explicit overrides (None means "not given") -> Validates -> Returns frozen RunConfig.
    """
    config = RunConfig(
        target_url=os.getenv("LOADTEST_URL", DEFAULT_TARGET_URL),
        concurrent_users=_env_int("LOADTEST_USERS", DEFAULT_CONCURRENT_USERS),
        output_dir=os.getenv("LOADTEST_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
        navigation_timeout_ms=_env_int("LOADTEST_TIMEOUT_MS", DEFAULT_NAVIGATION_TIMEOUT_MS),
        headless=_env_bool("LOADTEST_HEADLESS", DEFAULT_HEADLESS),
        max_additional_hops=_env_int("LOADTEST_MAX_HOPS", DEFAULT_MAX_ADDITIONAL_HOPS),
        simulate_profiles=_env_bool("LOADTEST_SIMULATE_PROFILES", DEFAULT_SIMULATE_PROFILES),
        seed=_env_int("LOADTEST_SEED", None),
    )
    given = {k: v for k, v in overrides.items() if v is not None}
    unknown = set(given) - set(RunConfig.__dataclass_fields__)
    if unknown:
        raise ConfigError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")
    return validate_config(replace(config, **given))


# === LOGGING SECTION ===

class HarnessFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Formats the timestamp (e.g. [ Tue Jan 06 05:32:41 AM UTC 2026 ]) ->
    Prepends level and context (user or 'root') -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created, timezone.utc)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', 'root')
        return f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"


def setup_logger(name="loadtest", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console and optional File handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    if name != "loadtest":
        logger.propagate = True
        setup_logger("loadtest", log_file=log_file, level=level)
        return logger

    formatter = HarnessFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def attach_log_file(log_file, level=logging.INFO):
    """Adds a file handler to the root harness logger after startup."""
    logger = setup_logger(level=level)
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(HarnessFormatter())
    logger.addHandler(file_handler)
    return file_handler


# Global logger instance
logger = setup_logger()
