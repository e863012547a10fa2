"""CLI entry point for TUI application.

This module handles command-line argument parsing, logging setup,
signal handling, and the main entry point.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import logging.handlers
import signal
import sys
from datetime import UTC, datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..utils import DEFAULT_CONFIG_PATH, load_config
from .app import TUIApp

logger = logging.getLogger(__name__)


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log line
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
            "context": {
                "module": record.module,
                "function": record.funcName,
                "line": record.lineno,
                "thread": record.threadName,
            },
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_context"):
            log_data["context"].update(record.extra_context)

        return json.dumps(log_data, default=str)


def _setup_logging(log_file: Path, debug: bool) -> None:
    """Setup structured JSON logging to file.

    Nothing is logged to the terminal; the TUI owns the screen.

    Args:
        log_file: Path to log file
        debug: Enable debug level logging
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # 10MB max, 3 backups
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(JSONFormatter())
    file_handler.setLevel(logging.DEBUG if debug else logging.INFO)

    root_logger.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)

    logger.info(
        "Logging initialized",
        extra={"extra_context": {"log_file": str(log_file), "debug": debug}},
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog="archon-tui",
        description="Terminal UI for browsing and editing Archon tasks",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH.expanduser(),
        help=f"Path to config.json (default: {DEFAULT_CONFIG_PATH})",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--project",
        type=str,
        metavar="PROJECT_ID",
        help="Open this project instead of the configured default",
    )

    parser.add_argument(
        "--no-realtime",
        action="store_true",
        help="Disable change notifications (refresh manually with r)",
    )

    return parser.parse_args(argv)


# Global TUI app instance for signal handlers
_app_instance: TUIApp | None = None


def _signal_handler(signum: int, frame) -> None:
    """Handle shutdown signals.

    Args:
        signum: Signal number
        frame: Current stack frame
    """
    if _app_instance is None:
        sys.exit(130 if signum == signal.SIGINT else 1)

    if signum == signal.SIGINT:
        logger.info("Received SIGINT, quitting")
        _app_instance.should_quit = True

    elif signum == signal.SIGTERM:
        logger.info("Received SIGTERM, shutting down")
        _app_instance.should_quit = True
        _app_instance.shutdown()
        sys.exit(0)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for TUI application.

    Returns:
        Exit code (0=success, 1=error, 130=SIGINT)
    """
    global _app_instance

    args = _parse_args(argv)
    console = Console()

    try:
        config = load_config(args.config.expanduser())
    except (OSError, ValueError) as err:
        console.print(f"[red]Error loading config: {escape(str(err))}[/red]")
        return 1

    if args.no_realtime:
        config = dataclasses.replace(config, realtime_enabled=False)

    log_file = config.cache_dir / "tui.log"
    _setup_logging(log_file, args.debug)

    logger.info(
        "TUI starting",
        extra={
            "extra_context": {
                "config_path": str(args.config),
                "server_url": config.server_url,
                "project": args.project,
                "realtime": config.realtime_enabled,
            }
        },
    )

    try:
        _app_instance = TUIApp(config, project_id=args.project)

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

        exit_code = _app_instance.run()

        logger.info(
            "TUI exited",
            extra={"extra_context": {"exit_code": exit_code}},
        )
        return exit_code

    except KeyboardInterrupt:
        logger.info("TUI interrupted by user (KeyboardInterrupt)")
        return 130

    except Exception as err:
        logger.error(
            "TUI crashed with unhandled exception",
            extra={"extra_context": {"error": str(err)}},
            exc_info=True,
        )
        console.print(f"[red]Fatal error: {escape(str(err))}[/red]")
        console.print(f"[dim]Check logs at: {log_file}[/dim]")
        return 1

    finally:
        if _app_instance:
            _app_instance.shutdown()
            _app_instance = None


if __name__ == "__main__":
    sys.exit(main())
