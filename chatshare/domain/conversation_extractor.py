#!/usr/bin/env python3
"""
Entry point for conversation extraction.

With a context object the conversation is recognized structurally; without
one it is read from Cursor's local databases. Both paths end with the same
length cap on message content.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..config import get_config
from .db_extractor import DbExtractionEngine
from .message_normalizer import truncate_long_messages
from .models import Conversation
from .shape_parsers import format_sample
from .structural_extractor import extract_from_context, is_empty_context

logger = logging.getLogger(__name__)


def log_context_structure(context: Any) -> None:
    """Log the shape of an incoming context when debugging is enabled."""
    if not get_config().debug:
        return

    logger.debug("Context debug information:")
    logger.debug(f"- type: {type(context).__name__}")
    logger.debug(f"- is array: {isinstance(context, list)}")
    if not isinstance(context, dict):
        return

    logger.debug(f"- top-level keys: {', '.join(map(str, context.keys()))}")
    for key, value in context.items():
        if isinstance(value, list) and value:
            logger.debug(f"- {key}[0] sample: {format_sample(value[0])}")
        elif isinstance(value, dict):
            logger.debug(f"- {key} keys: {', '.join(map(str, value.keys()))}")
        else:
            logger.debug(f"- {key}: {type(value).__name__}")


def extract_conversation(context: Any = None,
                         engine: Optional[DbExtractionEngine] = None) -> Conversation:
    """Return the normalized conversation for a context, or from local storage.

    Args:
        context: In-memory conversation context of any shape. When None, the
            conversation is read from the most recently active workspace.
        engine: Database engine to use for the no-context path.

    Returns:
        Messages in source order, possibly empty.

    Raises:
        ExtractionEnvironmentError: Only on the no-context path, when the
            host's storage cannot be located.
    """
    if context is not None:
        log_context_structure(context)
        if is_empty_context(context):
            logger.warning("Empty context received, nothing to extract")
            return []
        return truncate_long_messages(extract_from_context(context))

    logger.info("=====> Reading conversation from the local SQLite databases <=====")
    messages = (engine or DbExtractionEngine()).extract()
    return truncate_long_messages(messages)
