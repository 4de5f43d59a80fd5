"""
Extraction from a conversation context handed over in memory.
"""

from __future__ import annotations

import logging
from typing import Any

from .models import Conversation
from .recursive_search import find_message_array
from .shape_parsers import CONTEXT_PARSERS

logger = logging.getLogger(__name__)


def is_empty_context(context: Any) -> bool:
    if context is None:
        return True
    if isinstance(context, (dict, list, str, tuple)):
        return len(context) == 0
    return False


def extract_from_context(context: Any) -> Conversation:
    """Run the known layout parsers in priority order, then the recursive search.

    Returns an empty list when the context is empty or nothing matches.
    """
    if is_empty_context(context):
        logger.warning("Context is empty, nothing to extract")
        return []

    for name, parser in CONTEXT_PARSERS:
        try:
            messages = parser(context)
        except (TypeError, AttributeError, KeyError, ValueError) as e:
            logger.error(f"Parser {name} failed: {e}")
            continue
        if messages:
            logger.debug(f"Context matched layout: {name}")
            return messages

    logger.debug("No known layout matched, searching the context recursively")
    messages = find_message_array(context)
    if not messages:
        logger.warning("Could not find any conversation in the context")
    return messages
