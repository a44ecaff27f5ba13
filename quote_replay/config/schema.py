"""
Configuration schema for quote-replay.

Supports:
- YAML file loading
- Environment variable substitution (${VAR_NAME})
- Validation with error messages

Example config (quote-replay.yml):
    version: 1

    feed:
      marker: B6034
      utc_offset_hours: 9

    reorder:
      max_delay_seconds: 3.0
      capacity: 2048

    logging:
      level: ${QUOTE_REPLAY_LOG_LEVEL}
"""

import logging
import os
import re
from datetime import timedelta
from pathlib import Path
from dataclasses import dataclass, field, fields, asdict
from typing import Optional, List, Any

import yaml

from ..exporters.text import DEFAULT_TIMESTAMP_FORMAT
from ..formats.quote_layout import MARKER, UTC_OFFSET_HOURS
from ..streaming.reorder import DEFAULT_CAPACITY, MAX_DELAY


def _substitute_env_vars(value: Any) -> Any:
    """
    Substitute ${VAR_NAME} with environment variable values.

    Example:
        ${QUOTE_REPLAY_LOG_LEVEL} → os.environ.get('QUOTE_REPLAY_LOG_LEVEL')
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}]+)\}'

        def replace(match):
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                return match.group(0)  # Keep original if not found
            return env_value

        return re.sub(pattern, replace, value)

    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]

    return value


def _section(cls: type, name: str, data: Any) -> Any:
    """
    Build one config section from its YAML mapping.

    Values are converted to the field's declared type, so a ${VAR}
    substitution (always a string) still yields a number where one is
    expected.

    Raises:
        ValueError: Section is not a mapping, has unknown keys, or a value
            does not convert
    """
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"{name}: expected a mapping, got {type(data).__name__}")

    known = {f.name: f.type for f in fields(cls)}
    unknown = sorted(str(key) for key in set(data) - set(known))
    if unknown:
        raise ValueError(f"{name}: unknown keys {', '.join(unknown)}")

    values = {}
    for key, value in data.items():
        try:
            values[key] = known[key](value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"{name}.{key}: cannot convert {value!r}: {e}") from e

    return cls(**values)


@dataclass
class FeedConfig:
    """Feed identification."""
    marker: str = MARKER.decode('ascii')
    utc_offset_hours: float = UTC_OFFSET_HOURS

    @property
    def marker_bytes(self) -> bytes:
        return self.marker.encode('ascii')


@dataclass
class ReorderConfig:
    """Reorder window settings."""
    max_delay_seconds: float = MAX_DELAY.total_seconds()
    capacity: int = DEFAULT_CAPACITY

    @property
    def max_delay(self) -> timedelta:
        return timedelta(seconds=self.max_delay_seconds)


@dataclass
class OutputConfig:
    """Output line settings."""
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT


@dataclass
class LoggingConfig:
    """Diagnostic logging (always to stderr)."""
    level: str = 'WARNING'


@dataclass
class ReplayConfig:
    """Root configuration."""

    version: int = 1
    feed: FeedConfig = field(default_factory=FeedConfig)
    reorder: ReorderConfig = field(default_factory=ReorderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path) -> 'ReplayConfig':
        """Load from YAML file with env var substitution."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        data = _substitute_env_vars(data)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'ReplayConfig':
        """
        Create from dictionary.

        Raises:
            ValueError: Unknown key, or a value that does not convert to
                its field's type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a mapping, got {type(data).__name__}")

        try:
            version = int(data.get('version', 1))
        except (TypeError, ValueError) as e:
            raise ValueError(f"version: {e}") from e

        return cls(
            version=version,
            feed=_section(FeedConfig, 'feed', data.get('feed')),
            reorder=_section(ReorderConfig, 'reorder', data.get('reorder')),
            output=_section(OutputConfig, 'output', data.get('output')),
            logging=_section(LoggingConfig, 'logging', data.get('logging')),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate config. Returns list of errors (empty if valid)."""
        errors = []

        try:
            marker = self.feed.marker_bytes
        except UnicodeEncodeError:
            errors.append(f"Feed marker must be ASCII: {self.feed.marker!r}")
        else:
            if len(marker) != len(MARKER):
                errors.append(
                    f"Feed marker must be {len(MARKER)} bytes: {self.feed.marker!r}"
                )

        if not -24 < self.feed.utc_offset_hours < 24:
            errors.append(f"Invalid utc_offset_hours: {self.feed.utc_offset_hours}")

        if self.reorder.max_delay_seconds < 0:
            errors.append(f"Invalid max_delay_seconds: {self.reorder.max_delay_seconds}")

        if self.reorder.capacity <= 0:
            errors.append(f"Invalid capacity: {self.reorder.capacity}")

        if not isinstance(logging.getLevelName(self.logging.level.upper()), int):
            errors.append(f"Unknown logging level: {self.logging.level}")

        return errors


def load_config(path: Optional[Path] = None) -> ReplayConfig:
    """
    Load config from file or return defaults.

    An explicit path must exist. Without one, the search path is tried and
    defaults are used if nothing is found.

    Raises:
        FileNotFoundError: Explicit path does not exist
        yaml.YAMLError: File is not valid YAML
        ValueError: File content does not fit the schema
    """
    if path is not None:
        return ReplayConfig.load(path)

    search_paths = [
        Path('./quote-replay.yml'),
        Path('./quote-replay.yaml'),
        Path.home() / '.quote-replay' / 'config.yml',
    ]

    for p in search_paths:
        if p.exists():
            return ReplayConfig.load(p)

    return ReplayConfig()


def generate_default_config() -> str:
    """Generate default config as YAML."""
    return """# quote-replay configuration
version: 1

feed:
  marker: B6034
  utc_offset_hours: 9

reorder:
  max_delay_seconds: 3.0
  capacity: 2048

output:
  timestamp_format: "%Y-%m-%d %H:%M:%S.%f UTC"

logging:
  level: WARNING
"""
