"""
=============================================================================
PYTASMOTA CLI ENTRY POINT
=============================================================================

Command-line access to a device's command API.

=============================================================================
USAGE
=============================================================================

    # Read a value
    python -m tasmota http://tasmota-994e5a-3674 get Power

    # Read from the full status report
    python -m tasmota 192.168.1.50 path StatusSNS:ENERGY:Power

    # List supported modules
    python -m tasmota 192.168.1.50 modules

    # Relay state as 1 / 0 / -1
    python -m tasmota 192.168.1.50 power

    # Switch the relay
    python -m tasmota 192.168.1.50 set Power OFF

    # See every recv() of the exchange
    python -m tasmota --log-level DEBUG 192.168.1.50 get Power

=============================================================================
EXIT STATUS
=============================================================================

    0   the device answered
    1   INVALID / NOT_FOUND / HTTP-Returncode / no modules / unknown power
    2   usage error (argparse)

=============================================================================
"""

import argparse
import json
import sys
from dataclasses import replace

from . import __version__
from .api import INVALID, NOT_FOUND, RETURN_CODE_PREFIX, TasmotaAPI
from .client import HTTPClient
from .config import ClientConfig
from .log import setup_logging


def _is_failure(result: str) -> bool:
    return result in (INVALID, NOT_FOUND) or result.startswith(RETURN_CODE_PREFIX)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pytasmota",
        description="Query and switch Tasmota devices over their HTTP command API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pytasmota http://plug get Power                    # Read a value
  pytasmota 192.168.1.50 path StatusSNS:ENERGY:Power # Read from Status 0
  pytasmota 192.168.1.50 modules                     # List modules
  pytasmota 192.168.1.50 set Power OFF               # Switch off
        """
    )

    parser.add_argument("url", help="Base URL or address of the device")

    # ─────────────────────────────────────────────────────────────────────
    # COMMANDS
    # ─────────────────────────────────────────────────────────────────────

    commands = parser.add_subparsers(dest="command", required=True)

    get = commands.add_parser("get", help="Read a single value")
    get.add_argument("name", help="Command name, e.g. Power or Module0")

    path = commands.add_parser("path", help="Read a value from the Status 0 report")
    path.add_argument("path", help="Colon separated path, e.g. StatusSNS:ENERGY:Power")

    commands.add_parser("modules", help="List supported modules")
    commands.add_parser("power", help="Relay state as 1 (on), 0 (off) or -1 (unknown)")

    set_ = commands.add_parser("set", help="Write a value")
    set_.add_argument("name", help="Command name, e.g. Power")
    set_.add_argument("value", help="Value to write, e.g. OFF")

    # ─────────────────────────────────────────────────────────────────────
    # TRANSPORT / LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--poll-timeout", "-t",
        type=float,
        default=None,
        help="Seconds one poll() may wait (default: 5, or TASMOTA_POLL_TIMEOUT)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: WARNING, or TASMOTA_LOG_LEVEL)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"pytasmota {__version__}"
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entry point. Returns the exit status."""
    args = build_parser().parse_args(argv)

    # =========================================================================
    # CONFIGURATION: environment first, CLI arguments on top
    # =========================================================================

    try:
        config = ClientConfig.from_env()
        if args.poll_timeout is not None:
            config = replace(config, poll_timeout=args.poll_timeout)
        if args.log_level is not None:
            config = replace(config, log_level=args.log_level)
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    setup_logging(config)
    api = TasmotaAPI(args.url, client=HTTPClient(config))

    # =========================================================================
    # RUN COMMAND
    # =========================================================================

    if args.command == "modules":
        modules = api.get_modules()
        print(json.dumps(modules, indent=2))
        return 0 if modules else 1

    if args.command == "power":
        power = api.get_power()
        print(power)
        return 0 if power >= 0 else 1

    if args.command == "get":
        result = api.get_value(args.name)
    elif args.command == "path":
        result = api.get_value_from_path(args.path)
    else:
        result = api.set_value(args.name, args.value)

    print(result)
    return 1 if _is_failure(result) else 0


# =============================================================================
# ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    sys.exit(main())
