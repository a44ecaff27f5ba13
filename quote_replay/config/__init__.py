"""Configuration management for quote-replay."""

from .schema import (
    ReplayConfig,
    FeedConfig,
    ReorderConfig,
    OutputConfig,
    LoggingConfig,
    load_config,
    generate_default_config,
)

__all__ = [
    'ReplayConfig',
    'FeedConfig',
    'ReorderConfig',
    'OutputConfig',
    'LoggingConfig',
    'load_config',
    'generate_default_config',
]
