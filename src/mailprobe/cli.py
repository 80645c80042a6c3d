"""CLI entry point for running mail health checks."""

import argparse
import asyncio
import sys

from mailprobe.models import HealthCheckResult

EXIT_HEALTHY = 0
EXIT_UNHEALTHY = 1
EXIT_CONFIG_ERROR = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="mailprobe",
        description="Health checks for SMTP and IMAP servers",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("list", help="List configured health checks")

    check_parser = subparsers.add_parser("check", help="Run health checks")
    check_parser.add_argument(
        "names",
        nargs="*",
        metavar="NAME",
        help="Checks to run (default: all configured checks)",
    )
    check_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall deadline per check in seconds (default: from configuration)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_UNHEALTHY

    from mailprobe.checks.service import CheckService
    from mailprobe.config import get_settings_eager
    from mailprobe.credentials.env import EnvCredentialBackend
    from mailprobe.exceptions import CheckNotFoundError, ConfigError

    try:
        settings = get_settings_eager()
        service = CheckService(
            settings.checks,
            EnvCredentialBackend(),
            default_timeout=settings.default_timeout,
        )

        if args.command == "list":
            return _handle_list(service.list_checks())

        results = asyncio.run(service.run_all(args.names or None, timeout=args.timeout))
    except (ConfigError, CheckNotFoundError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    return _report(results)


def _handle_list(names: list[str]) -> int:
    if not names:
        print("No health checks configured")
        return EXIT_HEALTHY
    for name in names:
        print(name)
    return EXIT_HEALTHY


def _report(results: dict[str, HealthCheckResult]) -> int:
    """Print one line per result and return the exit status."""
    for name, result in results.items():
        line = f"{name}: {result.status.value}"
        if result.description:
            line += f" - {result.description}"
        print(line)

    if all(result.is_healthy for result in results.values()):
        return EXIT_HEALTHY
    return EXIT_UNHEALTHY


if __name__ == "__main__":
    sys.exit(main())
