"""Configuration loading for contentguard.

Settings come from an optional YAML file, then environment variables:

- ``CONTENTGUARD_CONFIG`` -- path of the YAML file
- ``CONTENTGUARD_DATA_DIR`` -- ledger directory root
- ``CONTENTGUARD_LEXICON`` -- path of a lexicon YAML file
- ``CONTENTGUARD_ADMIN_KEY`` -- key required by the admin API
- ``CONTENTGUARD_LOG_LEVEL`` -- logging level name

Example file::

    data_dir: /var/lib/contentguard
    lexicon: /etc/contentguard/lexicon-2024-06.yaml
    log_level: INFO
    thresholds:
      window_hours: 24
      medium_repeat_24h: 2
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from contentguard.moderation.admin import ModerationAdmin
from contentguard.moderation.content_filter import ContentFilter
from contentguard.moderation.errors import ConfigError
from contentguard.moderation.escalation import EscalationPolicy, EscalationThresholds
from contentguard.moderation.ledger import JsonlViolationLedger
from contentguard.moderation.lexicon import DEFAULT_LEXICON, Lexicon, load_lexicon

_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


@dataclass
class ModerationConfig:
    """Resolved settings for one process."""

    data_dir: Path = field(default_factory=lambda: Path.home() / ".contentguard")
    lexicon_path: Optional[Path] = None
    thresholds: EscalationThresholds = field(default_factory=EscalationThresholds)
    admin_api_key: str = ""
    log_level: str = "INFO"

    @property
    def ledger_dir(self) -> Path:
        return self.data_dir / "ledger"

    def load_lexicon(self) -> Lexicon:
        if self.lexicon_path is None:
            return DEFAULT_LEXICON
        return load_lexicon(self.lexicon_path)


@dataclass
class ModerationServices:
    """The wired object graph: one ledger shared by filter, policy, and admin."""

    config: ModerationConfig
    ledger: JsonlViolationLedger
    policy: EscalationPolicy
    filter: ContentFilter
    admin: ModerationAdmin


def load_config(path: str | Path | None = None) -> ModerationConfig:
    """Build a :class:`ModerationConfig` from *path* (or ``CONTENTGUARD_CONFIG``)
    and the environment. A missing explicit *path* is an error; no path at
    all means defaults plus environment."""
    path = path or os.environ.get("CONTENTGUARD_CONFIG")
    data: dict = {}
    if path:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Could not read config {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must be a mapping")

    config = ModerationConfig()
    if "data_dir" in data:
        config.data_dir = Path(data["data_dir"]).expanduser()
    if data.get("lexicon"):
        config.lexicon_path = Path(data["lexicon"]).expanduser()
    if "thresholds" in data:
        if not isinstance(data["thresholds"], dict):
            raise ConfigError("'thresholds' must be a mapping")
        config.thresholds = EscalationThresholds.from_dict(data["thresholds"])
    config.admin_api_key = str(data.get("admin_api_key", config.admin_api_key))
    config.log_level = str(data.get("log_level", config.log_level)).upper()

    env = os.environ
    if env.get("CONTENTGUARD_DATA_DIR"):
        config.data_dir = Path(env["CONTENTGUARD_DATA_DIR"]).expanduser()
    if env.get("CONTENTGUARD_LEXICON"):
        config.lexicon_path = Path(env["CONTENTGUARD_LEXICON"]).expanduser()
    if env.get("CONTENTGUARD_ADMIN_KEY"):
        config.admin_api_key = env["CONTENTGUARD_ADMIN_KEY"]
    if env.get("CONTENTGUARD_LOG_LEVEL"):
        config.log_level = env["CONTENTGUARD_LOG_LEVEL"].upper()

    if not isinstance(logging.getLevelName(config.log_level), int):
        raise ConfigError(f"Unknown log level: {config.log_level}")
    return config


def build_services(config: ModerationConfig) -> ModerationServices:
    lexicon = config.load_lexicon()
    ledger = JsonlViolationLedger(config.ledger_dir)
    policy = EscalationPolicy(ledger, config.thresholds, lexicon)
    return ModerationServices(
        config=config,
        ledger=ledger,
        policy=policy,
        filter=ContentFilter(ledger, policy=policy, lexicon=lexicon),
        admin=ModerationAdmin(ledger, policy),
    )


def configure_logging(level: str = "INFO") -> None:
    """Attach one stream handler to the ``contentguard`` logger."""
    logger = logging.getLogger("contentguard")
    logger.setLevel(level)
    if not any(getattr(h, "_contentguard", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._contentguard = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
