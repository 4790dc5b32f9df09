"""Main entry point for the Sumo Logic search MCP server."""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Any, List, NoReturn, Optional, Tuple

import structlog
from pydantic import ValidationError

from . import __version__
from .config import SumoSearchConfig
from .error_handler import ErrorHandler
from .exceptions import SumoLogicError
from .server import SumoSearchMCPServer


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Sumo Logic Search MCP Server - run Sumo Logic log searches over MCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  SUMOLOGIC_ACCESS_ID         Sumo Logic Access ID (required, or SUMO_ACCESS_ID)
  SUMOLOGIC_ACCESS_KEY        Sumo Logic Access Key (required, or SUMO_ACCESS_KEY)
  SUMOLOGIC_ENDPOINT          Sumo Logic API endpoint (required, or SUMO_ENDPOINT)
  SUMOLOGIC_TIMEOUT           Request timeout in seconds (default: 30)
  SUMOLOGIC_MAX_RETRIES       Maximum retry attempts (default: 3)
  SUMOLOGIC_RATE_LIMIT_DELAY  Base retry delay in seconds (default: 1.0)
  SUMOLOGIC_TIME_ZONE         Search time zone (default: Asia/Hong_Kong)
  SUMOLOGIC_POLL_INTERVAL     Job status poll interval in seconds (default: 1.0)
  SUMOLOGIC_MAX_WAIT          Maximum job wait in seconds (default: 300)
  SUMOLOGIC_FAIL_SOFT         Return empty results on failure (default: true)
  SUMOLOGIC_MASK_PATTERNS     JSON array of extra regexes to mask
  SUMOLOGIC_LOG_LEVEL         Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
  SUMOLOGIC_LOG_FORMAT        Log format: json, text (default: json)

Examples:
  export SUMOLOGIC_ACCESS_ID="your_access_id"
  export SUMOLOGIC_ACCESS_KEY="your_access_key"
  export SUMOLOGIC_ENDPOINT="https://api.sumologic.com"
  sumologic-search-mcp

  SUMOLOGIC_LOG_LEVEL=DEBUG sumologic-search-mcp --log-format text
        """
    )

    parser.add_argument(
        "--config-file",
        type=Path,
        help="Path to JSON configuration file (environment variables take precedence)"
    )

    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration and exit"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override log level from environment"
    )

    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        help="Override log format from environment"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser.parse_args(argv)


BANNER = "=" * 60

REQUIRED_ENV_HINT = (
    "  export SUMOLOGIC_ACCESS_ID=...   (or SUMO_ACCESS_ID)",
    "  export SUMOLOGIC_ACCESS_KEY=...  (or SUMO_ACCESS_KEY)",
    "  export SUMOLOGIC_ENDPOINT=https://api.sumologic.com",
)


def _fail(*lines: str) -> NoReturn:
    for line in lines:
        print(line, file=sys.stderr)
    sys.exit(1)


def load_configuration(args: argparse.Namespace) -> SumoSearchConfig:
    """Load configuration from environment, file and arguments, exiting on errors."""
    try:
        config = SumoSearchConfig.from_env_and_file(args.config_file)
    except ValidationError as e:
        problems = [
            f"  - {'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        source = [f"\nConfig file: {args.config_file} (environment variables override it)"] if args.config_file else []
        _fail(
            BANNER, "INVALID CONFIGURATION", BANNER, *problems,
            "\nSet at least:", *REQUIRED_ENV_HINT, *source,
            "\nUse --validate-config for a full report.",
        )
    except FileNotFoundError as e:
        _fail(f"Cannot load config file: {e}", "Fix the path or drop --config-file.")
    except ValueError as e:
        _fail(f"Cannot load configuration: {e}")

    # Command-line flags beat the environment
    for option in ("log_level", "log_format"):
        value = getattr(args, option)
        if value:
            setattr(config, option, value)
    return config


def _summary_rows(config: SumoSearchConfig) -> List[Tuple[str, Any]]:
    def present(value: str) -> str:
        return "set" if value else "MISSING"

    return [
        ("access_id", present(config.access_id)),
        ("access_key", present(config.access_key)),
        ("endpoint", config.endpoint or "MISSING"),
        ("timeout", f"{config.timeout}s"),
        ("max_retries", config.max_retries),
        ("time_zone", config.time_zone),
        ("poll_interval", f"{config.poll_interval}s"),
        ("max_wait", f"{config.max_wait}s"),
        ("fail_soft", config.fail_soft),
        ("mask_patterns", len(config.mask_patterns)),
        ("log_level", config.log_level),
        ("log_format", config.log_format),
    ]


def validate_configuration(config: SumoSearchConfig) -> None:
    """Print a configuration report; exits with status 1 when the configuration is unusable."""
    validation = config.validate_startup_configuration()

    print(BANNER)
    print("sumologic-search-mcp configuration check")
    print(BANNER)

    sources = config.config_sources
    if sources.get("file_loaded"):
        print(f"Loaded file: {sources['file_path']}")
    if sources.get("env_vars_found"):
        print(f"Environment: {', '.join(sources['env_vars_found'])}")

    print()
    width = max(len(name) for name, _ in _summary_rows(config))
    for name, value in _summary_rows(config):
        print(f"  {name.ljust(width)}  {value}")

    for heading, entries in (("Errors", validation["errors"]), ("Warnings", validation["warnings"])):
        if not entries:
            continue
        print(f"\n{heading}:")
        for entry in entries:
            print(f"  - {entry['field']}: {entry['message']}")
            if entry.get("recommendation"):
                print(f"    -> {entry['recommendation']}")

    print()
    print(BANNER)
    if not validation["valid"]:
        print("Result: INVALID")
        sys.exit(1)
    print("Result: OK")


class GracefulShutdown:
    """Turns SIGINT/SIGTERM into an event the main task can wait on."""

    def __init__(self):
        self.stop_requested = asyncio.Event()
        self.server: Optional[SumoSearchMCPServer] = None
        self.logger = structlog.get_logger(__name__)

    def install(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop, sig)
            except NotImplementedError:
                # No loop signal support on Windows
                signal.signal(sig, lambda signum, _frame: loop.call_soon_threadsafe(self.request_stop, signum))

    def request_stop(self, signum: int) -> None:
        self.logger.info("Stop requested", signal=signal.Signals(signum).name)
        self.stop_requested.set()

    async def close_server(self) -> None:
        if self.server is None:
            return
        try:
            await self.server.shutdown()
        except Exception as e:
            self.logger.error("Server shutdown failed", error=str(e))
        else:
            self.logger.info("Server stopped")


async def _serve_until_stopped(server: SumoSearchMCPServer, stop: asyncio.Event) -> None:
    serving = asyncio.create_task(server.run_stdio())
    stopping = asyncio.create_task(stop.wait())
    done, pending = await asyncio.wait({serving, stopping}, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    if serving in done:
        # Re-raise whatever ended the stdio session
        serving.result()


async def main_async(args: argparse.Namespace) -> None:
    config = load_configuration(args)

    if args.validate_config:
        validate_configuration(config)
        return

    validation = config.validate_startup_configuration()
    if not validation["valid"]:
        _fail(
            "Cannot start: configuration is incomplete",
            *(f"  - {error['field']}: {error['message']}" for error in validation["errors"]),
            "\nUse --validate-config for a full report.",
        )

    ErrorHandler.configure_logging(config.log_level, config.log_format)
    logger = structlog.get_logger(__name__)
    for warning in validation["warnings"]:
        logger.warning("Configuration warning", **warning)

    shutdown = GracefulShutdown()
    shutdown.install()
    shutdown.server = SumoSearchMCPServer(config)

    try:
        await shutdown.server.start()
        await _serve_until_stopped(shutdown.server, shutdown.stop_requested)
    except SumoLogicError as e:
        logger.error("Server stopped on Sumo Logic error", **e.to_dict())
        sys.exit(1)
    except Exception as e:
        logger.error("Server crashed", error=str(e), exc_info=True)
        sys.exit(1)
    finally:
        await shutdown.close_server()


def main() -> None:
    """Console script entry point."""
    args = parse_arguments()
    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)


if __name__ == "__main__":
    main()
