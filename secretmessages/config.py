"""
Ledger Configuration

Defines capacity, message range bounds, and reduction budget for the
registry and batch subsystems.
"""

from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging
import os

import yaml

from secretmessages.errors import ConfigError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class LedgerConfig:
    """Configuration for the registry, message store, and batch reducer."""

    # Registry
    max_addresses: int = 100

    # Message range bounds (inclusive)
    max_agent_id: int = 3000
    max_x: int = 15000
    min_y: int = 5000
    max_y: int = 20000

    # Reduction budget: entries folded per run_reduce call (None = unbounded)
    max_actions_per_reduce: Optional[int] = None

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate structural invariants for the configuration."""
        if self.max_addresses < 1:
            raise ConfigError(f"max_addresses must be ≥1, got {self.max_addresses}")
        for attr_name in ("max_agent_id", "max_x", "min_y", "max_y"):
            value = getattr(self, attr_name)
            if value < 0:
                raise ConfigError(f"{attr_name} must be ≥0, got {value}")
        if self.min_y > self.max_y:
            raise ConfigError(
                f"min_y ({self.min_y}) must not exceed max_y ({self.max_y})"
            )
        if self.max_actions_per_reduce is not None and self.max_actions_per_reduce < 1:
            raise ConfigError(
                f"max_actions_per_reduce must be ≥1 or unset, got {self.max_actions_per_reduce}"
            )
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError(f"Unknown log_level: {self.log_level!r}")

    @property
    def numeric_log_level(self) -> int:
        return getattr(logging, self.log_level.upper())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LedgerConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, filepath: Union[str, Path]) -> 'LedgerConfig':
        """
        Load configuration from a YAML file.

        Accepts either a flat mapping or one nested under a top-level
        ``ledger`` key.
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        if "ledger" in data:
            data = data["ledger"] or {}
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {path}: ledger must be a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_env(cls) -> 'LedgerConfig':
        """
        Load configuration from environment variables.

        Environment variables:
            SECRETS_MAX_ADDRESSES (default 100)
            SECRETS_MAX_AGENT_ID (default 3000)
            SECRETS_MAX_X (default 15000)
            SECRETS_MIN_Y (default 5000)
            SECRETS_MAX_Y (default 20000)
            SECRETS_MAX_ACTIONS_PER_REDUCE (default unbounded)
            SECRETS_LOG_LEVEL (default INFO)
        """
        budget = os.getenv("SECRETS_MAX_ACTIONS_PER_REDUCE", "").strip()
        try:
            return cls(
                max_addresses=int(os.getenv("SECRETS_MAX_ADDRESSES", "100")),
                max_agent_id=int(os.getenv("SECRETS_MAX_AGENT_ID", "3000")),
                max_x=int(os.getenv("SECRETS_MAX_X", "15000")),
                min_y=int(os.getenv("SECRETS_MIN_Y", "5000")),
                max_y=int(os.getenv("SECRETS_MAX_Y", "20000")),
                max_actions_per_reduce=int(budget) if budget else None,
                log_level=os.getenv("SECRETS_LOG_LEVEL", "INFO"),
            )
        except ValueError as exc:
            if isinstance(exc, ConfigError):
                raise
            raise ConfigError(f"Invalid numeric environment setting: {exc}") from exc
