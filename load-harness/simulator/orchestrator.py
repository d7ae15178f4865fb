"""
FILE DESCRIPTION: Worker pool that runs one isolated browser session per simulated user.
KEY FUNCTIONS/CLASSES: LoadTestOrchestrator, RunReport
"""

import os
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, List, Optional

import psutil

from reporting.aggregator import Reporter, RunStats, RunSummary
from simulator.core import RunConfig, logger
from simulator.driver import BrowserDriver, PlaywrightDriver
from simulator.models import Result
from simulator.session import SessionDriver
from simulator.sink import FileSink


@dataclass(frozen=True)
class RunReport:
    results: List[Result]
    summary: RunSummary
    stats: RunStats
    results_path: str


def seeded_rng_factory(seed: Optional[int]) -> Callable[[int], random.Random]:
    """Per-session random sources. With a seed, each user's draws are reproducible."""
    if seed is None:
        return lambda user_id: random.Random()
    return lambda user_id: random.Random(f"{seed}:{user_id}")


def _rss_mb(process) -> float:
    return process.memory_info().rss / 1024 / 1024


class LoadTestOrchestrator:
    """
    FLOW: Prepares the output sink -> Submits N session runs to a pool of N threads ->
    Collects completions in any order via as_completed -> Synthesizes a failure Result for any
    unit that dies without reporting -> Invokes the Reporter once with exactly N Results.
    """

    def __init__(self, config: RunConfig, driver: Optional[BrowserDriver] = None,
                 sink: Optional[FileSink] = None, reporter: Optional[Reporter] = None,
                 session_driver_factory: Optional[Callable[[], SessionDriver]] = None):
        self.config = config
        self.session_config = config.session_config()
        self.driver = driver or PlaywrightDriver(headless=config.headless)
        self.sink = sink or FileSink(config.output_dir)
        self.reporter = reporter or Reporter(self.sink)
        self.session_driver_factory = session_driver_factory or self._default_session_driver

    def _default_session_driver(self) -> SessionDriver:
        return SessionDriver(
            self.driver,
            self.session_config,
            self.sink,
            rng_factory=seeded_rng_factory(self.config.seed),
        )

    def log(self, level, msg, context="root"):
        getattr(logger, level)(msg, extra={'context': context})

    def _run_session(self, user_id: int) -> Result:
        self.log("info", "Session started", context=f"User-{user_id}")
        return self.session_driver_factory().run(user_id)

    def _collect(self, future, user_id: int) -> Result:
        try:
            result = future.result()
        except Exception as e:
            self.log("error", f"Session crashed before reporting: {e}", context=f"User-{user_id}")
            return Result.crashed(user_id, str(e) or e.__class__.__name__)

        if not isinstance(result, Result):
            return Result.crashed(user_id, f"no result produced (got {type(result).__name__})")
        if result.user_id != user_id:
            return Result.crashed(user_id, f"result reported for user {result.user_id}")
        return result

    def _log_result(self, result: Result):
        context = f"User-{result.user_id}"
        if result.success:
            self.log("info", f"SUCCESS ({result.load_time_ms}ms) [Profile: {result.profile_name}] "
                             f"[Pages visited: {result.hops_completed}]", context=context)
        else:
            self.log("error", f"FAILED ({result.error_message}) [Profile: {result.profile_name}]",
                     context=context)

    def run_sessions(self) -> List[Result]:
        """Returns exactly one Result per user, ordered by user id."""
        total = self.config.concurrent_users
        results = {}

        with ThreadPoolExecutor(max_workers=total, thread_name_prefix="User") as executor:
            future_to_user = {
                executor.submit(self._run_session, user_id): user_id
                for user_id in range(1, total + 1)
            }

            for future in as_completed(future_to_user):
                user_id = future_to_user[future]
                result = self._collect(future, user_id)
                results[user_id] = result
                self._log_result(result)
                self.log("debug", f"Progress: {len(results)}/{total} sessions reported")

        if len(results) != total:
            raise RuntimeError(f"Collected {len(results)} results for {total} sessions")

        return [results[user_id] for user_id in sorted(results)]

    def run(self) -> RunReport:
        process = psutil.Process(os.getpid())
        memory_start = _rss_mb(process)
        started = time.time()

        self.sink.ensure_dir()
        results = self.run_sessions()

        stats = RunStats(
            duration_s=time.time() - started,
            memory_start_mb=memory_start,
            memory_end_mb=_rss_mb(process),
        )
        summary, results_path = self.reporter.report(results, self.config.target_url, stats)
        return RunReport(results=results, summary=summary, stats=stats, results_path=results_path)
