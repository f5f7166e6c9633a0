"""Application entry point for miniflux-rules."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import threading
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.miniflux_client import MinifluxClient
from core.config import RunConfig
from core.ports import SourceError
from core.processor import EntryProcessor, ProcessingAborted
from core.rules_engine import Matcher, RuleCompileError, build_rules

NAME = "MINIFLUX RULES"
FONT = "tarty-1"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict, api_key: Optional[str]) -> list[str]:
    values = [api_key] if api_key else []
    redact_cfg = config.get("redact", {}) if config else {}
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: Optional[dict] = None, api_key: Optional[str] = None) -> None:
    config = config or {}
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config, api_key)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/miniflux-rules.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        # Drops the bootstrap console handler, which has no redaction.
        handlers.append(logging.NullHandler())

    # Reconfigured once the config file is known, so replace earlier handlers.
    logging.basicConfig(level=level, handlers=handlers, force=True)


def _load(config_path: Optional[str]) -> tuple[RunConfig, Matcher]:
    path = config_path or settings.default_config_path()
    LOGGER.info("Loading configuration from %s", path)
    config = settings.load_config(path)
    matcher = build_rules(config.rules)
    LOGGER.info("%s rules are loaded", len(matcher))
    return config, matcher


def _run_once(processor: EntryProcessor) -> bool:
    try:
        processor.process()
    except ProcessingAborted as exc:
        LOGGER.error("Processing error: %s", exc)
        LOGGER.info("Partial results: %s", exc.stats.summary())
        return False
    return True


def _run_loop(processor: EntryProcessor, interval: int, stop: threading.Event) -> None:
    LOGGER.info("Starting initial processing run")
    _run_once(processor)
    while not stop.wait(interval):
        LOGGER.info("Starting scheduled processing run")
        _run_once(processor)
    LOGGER.info("Shutting down")


def _install_signal_handlers(stop: threading.Event) -> None:
    def _handle(signum, _frame) -> None:
        LOGGER.info("Received signal %s, shutting down", signal.Signals(signum).name)
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def _run(config_path: Optional[str], dry_run: bool) -> int:
    _print_banner()
    _configure_logging()

    if dry_run:
        LOGGER.info("Dry-run mode enabled: no changes will be applied")

    try:
        config, matcher = _load(config_path)
        api_key = settings.get_api_key()
    except (settings.ConfigError, RuleCompileError) as exc:
        LOGGER.error("Failed to load config: %s", exc)
        return 1

    # Reconfigure with the file-driven settings now that the secret is known.
    _configure_logging(config.logging, api_key)
    LOGGER.info("API key loaded successfully")

    client = MinifluxClient(config.miniflux_url, api_key)
    processor = EntryProcessor(client, matcher, dry_run=dry_run)

    if config.interval == 0:
        LOGGER.info("Running in single-run mode")
        return 0 if _run_once(processor) else 1

    LOGGER.info("Running in loop mode with %s second interval", config.interval)
    stop = threading.Event()
    _install_signal_handlers(stop)
    _run_loop(processor, config.interval, stop)
    return 0


def _check(config_path: Optional[str]) -> int:
    _configure_logging()
    try:
        _load(config_path)
    except (settings.ConfigError, RuleCompileError) as exc:
        LOGGER.error("Invalid config: %s", exc)
        return 1
    LOGGER.info("Configuration is valid")
    return 0


def _feeds(config_path: Optional[str]) -> int:
    _print_banner()
    _configure_logging()
    try:
        config = settings.load_config(config_path or settings.default_config_path())
        api_key = settings.get_api_key()
    except settings.ConfigError as exc:
        LOGGER.error("Failed to load config: %s", exc)
        return 1

    client = MinifluxClient(config.miniflux_url, api_key)
    try:
        feeds = client.list_feeds()
    except SourceError as exc:
        LOGGER.error("Failed to list feeds: %s", exc)
        return 1
    if not feeds:
        print("No feeds found.")
        return 0

    for feed in sorted(feeds, key=lambda item: item.title.lower()):
        print(f"{feed.id} | {feed.title} | {feed.site_url}")
    return 0


def _add_common_options(parser: argparse.ArgumentParser, suppress: bool) -> None:
    # Subparsers must not clobber values given before the subcommand.
    default = argparse.SUPPRESS if suppress else None
    parser.add_argument("--config", default=default, help="Path to the rules configuration file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=argparse.SUPPRESS if suppress else False,
        help="Log what would change without updating Miniflux",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="miniflux-rules")
    _add_common_options(parser, suppress=False)
    subparsers = parser.add_subparsers(dest="command")

    for name, help_text in (
        ("run", "Apply rules to Miniflux entries (default)"),
        ("check", "Validate the config file and compile rules"),
        ("feeds", "List Miniflux feeds to help write feed patterns"),
    ):
        _add_common_options(subparsers.add_parser(name, help=help_text), suppress=True)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "check":
        return _check(args.config)
    if args.command == "feeds":
        return _feeds(args.config)
    return _run(args.config, args.dry_run)


if __name__ == "__main__":
    raise SystemExit(main())
