"""Configuration loading for miniflux-rules.

All user-editable settings (Miniflux URL, interval, rules, logging) live in
a single YAML file so rules can be edited without touching Python. Secrets
never live in that file; the API key comes from the environment.
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv

from core.config import Rule, RunConfig
from core.rules_engine import PATTERN_FIELDS

LOGGER = logging.getLogger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

DEFAULT_CONFIG_PATH = "rules.yaml"
VALID_ACTIONS = ("read", "remove")


class ConfigError(ValueError):
    """Raised when the config file or environment is unusable."""


def default_config_path() -> str:
    """Return the rules file path from MINIFLUX_RULES_FILE or the default."""

    load_dotenv()
    return os.getenv("MINIFLUX_RULES_FILE") or DEFAULT_CONFIG_PATH


def _load_yaml(path: str) -> dict:
    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a mapping at the top level")
    return data


def _rule_label(index: int, name: Optional[str]) -> str:
    if name:
        return f"rule {index} ({name})"
    return f"rule {index}"


def _parse_rule(index: int, raw: Any) -> Rule:
    if not isinstance(raw, dict):
        raise ConfigError(f"rule {index}: must be a mapping")

    name = str(raw.get("name") or "").strip()
    if not name:
        raise ConfigError(f"rule {index}: name is required")

    action = str(raw.get("action") or "")
    if action.lower() not in VALID_ACTIONS:
        raise ConfigError(f"{_rule_label(index, name)}: action must be 'read' or 'remove'")

    patterns = {}
    for field in PATTERN_FIELDS:
        value = raw.get(field)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ConfigError(f"{_rule_label(index, name)}: {field} must be a string")
        patterns[field] = value

    return Rule(name=name, action=action, **patterns)


def parse_rules(raw_rules: Any) -> List[Rule]:
    """Validate rule configs, dropping rules marked ``enabled: false``."""

    if raw_rules is None:
        return []
    if not isinstance(raw_rules, list):
        raise ConfigError("rules must be a list")

    rules: List[Rule] = []
    for index, raw in enumerate(raw_rules):
        rule = _parse_rule(index, raw)
        if not raw.get("enabled", True):
            LOGGER.info("Skipping disabled %s", _rule_label(index, rule.name))
            continue
        rules.append(rule)
    return rules


def load_config(path: str) -> RunConfig:
    """Load and validate the config file.

    MINIFLUX_URL in the environment (or a .env file) overrides
    ``miniflux_url`` so deployments can share one rules file.
    """

    load_dotenv()
    data = _load_yaml(path)

    miniflux_url = os.getenv("MINIFLUX_URL") or str(data.get("miniflux_url") or "")
    if not miniflux_url:
        raise ConfigError("miniflux_url is required")

    try:
        interval = int(data.get("interval") or 0)
    except (TypeError, ValueError) as exc:
        raise ConfigError("interval must be an integer") from exc
    if interval < 0:
        raise ConfigError("interval must be >= 0")

    logging_config = data.get("logging") or {}
    if not isinstance(logging_config, dict):
        raise ConfigError("logging must be a mapping")

    return RunConfig(
        miniflux_url=miniflux_url,
        interval=interval,
        rules=parse_rules(data.get("rules")),
        logging=logging_config,
    )


def get_api_key() -> str:
    """Return the Miniflux API key.

    MINIFLUX_API_KEY wins; otherwise the key is read from the file named by
    MINIFLUX_API_KEY_FILE (Docker/Kubernetes secrets style).
    """

    load_dotenv()

    api_key = os.getenv("MINIFLUX_API_KEY")
    if api_key:
        return api_key

    key_file = os.getenv("MINIFLUX_API_KEY_FILE")
    if key_file:
        try:
            with open(key_file, "r", encoding="utf-8") as handle:
                return handle.read().strip()
        except OSError as exc:
            raise ConfigError(f"Failed to read API key file: {exc}") from exc

    raise ConfigError("MINIFLUX_API_KEY or MINIFLUX_API_KEY_FILE environment variable is required")
