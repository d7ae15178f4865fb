"""
Command line entry point for the browser-session load harness.
Resolves the run configuration once, prints the start banner, runs all sessions.
"""

import argparse
import logging
import sys

from simulator.core import ConfigError, attach_log_file, load_config, setup_logger
from simulator.orchestrator import LoadTestOrchestrator
from simulator.profiles import PROFILE_CATALOG


def build_parser():
    parser = argparse.ArgumentParser(description="Concurrent browser-session load tester")
    parser.add_argument("--url", dest="target_url", help="Target website URL")
    parser.add_argument("--users", dest="concurrent_users", type=int, help="Number of concurrent users")
    parser.add_argument("--output-dir", dest="output_dir", help="Directory for screenshots and results.csv")
    parser.add_argument("--timeout", dest="navigation_timeout_ms", type=int,
                        help="Navigation timeout in milliseconds")
    parser.add_argument("--max-hops", dest="max_additional_hops", type=int,
                        help="Max number of additional pages each user visits")
    parser.add_argument("--headless", dest="headless", action="store_true", default=None,
                        help="Run browsers headless")
    parser.add_argument("--headed", dest="headless", action="store_false",
                        help="Run browsers with a visible window")
    parser.add_argument("--profiles", dest="simulate_profiles", action="store_true", default=None,
                        help="Apply a random client profile per user")
    parser.add_argument("--no-profiles", dest="simulate_profiles", action="store_false",
                        help="Use default browser settings for every user")
    parser.add_argument("--seed", type=int, help="Seed for reproducible random behavior")
    parser.add_argument("--log-file", help="Also write log lines to this file")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log verbosity")
    return parser


def print_banner(config):
    print(f"Starting load test for {config.target_url}")
    print(f"Testing with {config.concurrent_users} concurrent users...")
    print(f"Profile simulation: {'Enabled' if config.simulate_profiles else 'Disabled'}")
    if config.simulate_profiles:
        print(f"Available profiles: {len(PROFILE_CATALOG)}")
    print(f"Results will be saved to: {config.output_dir}")


def main(argv=None):
    args = build_parser().parse_args(argv)

    level = getattr(logging, args.log_level)
    setup_logger(level=level)
    if args.log_file:
        attach_log_file(args.log_file, level=level)

    try:
        config = load_config(
            target_url=args.target_url,
            concurrent_users=args.concurrent_users,
            output_dir=args.output_dir,
            navigation_timeout_ms=args.navigation_timeout_ms,
            headless=args.headless,
            max_additional_hops=args.max_additional_hops,
            simulate_profiles=args.simulate_profiles,
            seed=args.seed,
        )
    except ConfigError as e:
        print(f"CONFIG_ERROR: {e}", file=sys.stderr)
        return 2

    print_banner(config)
    try:
        LoadTestOrchestrator(config).run()
    except OSError as e:
        print(f"OUTPUT_ERROR: Could not write results to {config.output_dir}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
