"""
Last-resort search for a message list buried somewhere in a context object.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .message_normalizer import coerce_content, determine_role
from .models import Conversation, make_message

logger = logging.getLogger(__name__)

MAX_SEARCH_DEPTH = 10
MIN_MESSAGES = 2

ROLE_FIELDS = ("role", "type", "sender", "isUser")
CONTENT_FIELDS = ("content", "text", "message")


def _message_content(item: Dict[str, Any]) -> str:
    content = coerce_content(item)
    if content:
        return content
    message = item.get("message")
    return message if isinstance(message, str) else ""


def messages_from_array(items: List[Any]) -> Conversation:
    """Keep the elements that look like messages (a role field and a content field)."""
    messages = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if not any(field in item for field in ROLE_FIELDS):
            continue
        if not any(field in item for field in CONTENT_FIELDS):
            continue
        content = _message_content(item)
        if not content.strip():
            continue
        messages.append(make_message(determine_role(item), content))
    return messages


def find_message_array(root: Any, max_depth: int = MAX_SEARCH_DEPTH) -> Conversation:
    """Depth-first search for the first list holding at least two messages.

    Args:
        root: Arbitrary decoded JSON-like value, possibly self-referencing.
        max_depth: Containers nested deeper than this are not inspected.

    Returns:
        The messages of the first qualifying list, or an empty list.
    """
    # id(container) -> shallowest depth it was expanded at
    expanded: Dict[int, int] = {}
    stack = [(root, 0)]

    while stack:
        node, depth = stack.pop()
        if depth > max_depth:
            continue

        if isinstance(node, list):
            children = node
        elif isinstance(node, dict):
            children = list(node.values())
        else:
            continue

        seen_at = expanded.get(id(node))
        if seen_at is not None and seen_at <= depth:
            continue
        expanded[id(node)] = depth

        if isinstance(node, list):
            candidate = messages_from_array(node)
            if len(candidate) >= MIN_MESSAGES:
                logger.info(f"Recursive search found {len(candidate)} messages at depth {depth}")
                return candidate

        for child in reversed(children):
            if isinstance(child, (list, dict)):
                stack.append((child, depth + 1))

    logger.debug(f"Recursive search found no message array within {max_depth} levels")
    return []
