#!/usr/bin/env python3
"""
Process-wide extractor configuration.

Settings are read once at start-up (optionally from a .env file) and stay
read-only while a conversation is being extracted.
"""

from __future__ import annotations

import logging
import os
import pathlib
from typing import NamedTuple, Optional, Union

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTENT_LENGTH = 100000
DEFAULT_TRUNCATION_MARKER = "... (content truncated)"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ExtractorConfig(NamedTuple):
    debug: bool = False
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH
    truncation_marker: str = DEFAULT_TRUNCATION_MARKER
    storage_root: Optional[pathlib.Path] = None


_config = ExtractorConfig()


def get_config() -> ExtractorConfig:
    return _config


def update_config(**changes) -> ExtractorConfig:
    """Replace the active configuration with updated values.

    Raises:
        TypeError: If an unknown setting is passed.
        ValueError: If max_content_length is not positive.
    """
    global _config
    unknown = set(changes) - set(ExtractorConfig._fields)
    if unknown:
        raise TypeError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    if "max_content_length" in changes and int(changes["max_content_length"]) <= 0:
        raise ValueError(f"max_content_length must be positive, got {changes['max_content_length']}")
    if changes.get("storage_root") is not None:
        changes["storage_root"] = pathlib.Path(changes["storage_root"])
    _config = _config._replace(**changes)
    logger.info(f"Updated extractor config: {_config}")
    return _config


def reset_config() -> ExtractorConfig:
    """Restore the built-in defaults."""
    global _config
    _config = ExtractorConfig()
    return _config


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def load_config(env_path: Optional[Union[str, pathlib.Path]] = None) -> ExtractorConfig:
    """Build the configuration from a .env file and the process environment.

    Args:
        env_path: Explicit .env file. When omitted, python-dotenv searches
            from the current directory upwards.

    Returns:
        The new active configuration.
    """
    global _config
    if env_path is not None:
        load_dotenv(env_path)
    else:
        load_dotenv()

    max_length = DEFAULT_MAX_CONTENT_LENGTH
    raw_length = os.getenv("CHATSHARE_MAX_CONTENT_LENGTH")
    if raw_length:
        try:
            max_length = int(raw_length)
            if max_length <= 0:
                raise ValueError(raw_length)
        except ValueError:
            logger.warning(f"Ignoring invalid CHATSHARE_MAX_CONTENT_LENGTH={raw_length!r}")
            max_length = DEFAULT_MAX_CONTENT_LENGTH

    storage_root = os.getenv("CHATSHARE_WORKSPACE_STORAGE")

    _config = ExtractorConfig(
        debug=_env_flag(os.getenv("CHATSHARE_DEBUG")),
        max_content_length=max_length,
        storage_root=pathlib.Path(storage_root).expanduser() if storage_root else None,
    )
    return _config


def configure_logging(debug: bool = False) -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO,
                        format=LOG_FORMAT)
