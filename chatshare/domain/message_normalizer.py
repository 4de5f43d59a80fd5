#!/usr/bin/env python3
"""
Normalization helpers shared by every extraction path.

The host writes message records in many layouts, so each helper here accepts
anything and never raises: role inference falls back to ``user`` and content
coercion falls back to an empty string that callers filter out.
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, Iterable, List, Optional

from ..config import get_config
from .models import ROLES, Conversation, Message

logger = logging.getLogger(__name__)

USER_ALIASES = ("user", "human")
ASSISTANT_ALIASES = ("assistant", "ai", "bot")


def _alias_role(value: Any) -> Optional[str]:
    if isinstance(value, str):
        if value in USER_ALIASES:
            return "user"
        if value in ASSISTANT_ALIASES:
            return "assistant"
    return None


def determine_role(msg: Any) -> str:
    """Infer the role of a message-like record.

    Precedence: explicit ``role``, then the ``isUser`` flag, then ``type``
    (string aliases or the numeric codes 1/2), then ``sender``. Records with
    no usable signal are treated as user messages.
    """
    if not isinstance(msg, dict):
        return "user"

    role = msg.get("role")
    if isinstance(role, str) and role in ROLES:
        return role

    is_user = msg.get("isUser")
    if is_user is True:
        return "user"
    if is_user is False:
        return "assistant"

    msg_type = msg.get("type")
    aliased = _alias_role(msg_type)
    if aliased:
        return aliased
    # bool is an int subclass; True must not read as type 1
    if isinstance(msg_type, (int, float)) and not isinstance(msg_type, bool):
        if msg_type == 1:
            return "user"
        if msg_type == 2:
            return "assistant"

    aliased = _alias_role(msg.get("sender"))
    if aliased:
        return aliased

    return "user"


def _join_content_parts(parts: Iterable[Any]) -> str:
    texts = []
    for part in parts:
        if isinstance(part, str):
            texts.append(part)
        elif isinstance(part, dict) and isinstance(part.get("text"), str):
            texts.append(part["text"])
    return "\n".join(texts)


def coerce_content(msg: Any) -> str:
    """Extract a plain-text body from a message-like record.

    Tries, in order: string ``content``, string ``text``, ``content.text``,
    and an array ``content`` whose string or ``{text}`` parts are joined with
    newlines. Returns an empty string when nothing usable is found.
    """
    if not isinstance(msg, dict):
        return ""

    content = msg.get("content")
    if isinstance(content, str) and content:
        return content

    text = msg.get("text")
    if isinstance(text, str) and text:
        return text

    if isinstance(content, dict) and isinstance(content.get("text"), str) and content["text"]:
        return content["text"]

    if isinstance(content, list):
        return _join_content_parts(content)

    return ""


def coerce_flat_content(msg: Any) -> str:
    """Content lookup for layouts that only ever hold flat text.

    Only string ``content``, ``content.text`` and string ``text`` count.
    """
    if not isinstance(msg, dict):
        return ""

    content = msg.get("content")
    if isinstance(content, str) and content:
        return content
    if isinstance(content, dict) and isinstance(content.get("text"), str) and content["text"]:
        return content["text"]

    text = msg.get("text")
    if isinstance(text, str):
        return text
    return ""


def extract_text_from_richtext(richtext: Any) -> str:
    """Extract plain text from the editor's serialized rich-text tree.

    Each top-level block under ``root.children`` becomes one line made of the
    text of all its descendants.
    """
    if isinstance(richtext, str):
        try:
            richtext = json.loads(richtext)
        except (json.JSONDecodeError, ValueError):
            return richtext

    if not isinstance(richtext, dict):
        return ""

    root = richtext.get("root", {})
    if not isinstance(root, dict):
        return ""

    def collect(node: Any, depth: int) -> str:
        if not isinstance(node, dict) or depth > 10:
            return ""
        text = node.get("text", "")
        parts = [text] if isinstance(text, str) and text else []
        for child in node.get("children", []) or []:
            nested = collect(child, depth + 1)
            if nested:
                parts.append(nested)
        return "".join(parts)

    lines = []
    for block in root.get("children", []) or []:
        line = collect(block, 0)
        if line:
            lines.append(line)
    return "\n".join(lines)


def coerce_stored_text(msg: Any) -> str:
    """Content lookup for records read back from the host's stores.

    Stored records prefer ``text`` over ``content`` and may only carry a
    ``richText`` tree.
    """
    if not isinstance(msg, dict):
        return ""

    text = msg.get("text")
    if isinstance(text, str) and text:
        return text

    content = msg.get("content")
    if isinstance(content, str) and content:
        return content

    rich = msg.get("richText")
    if rich:
        return extract_text_from_richtext(rich)
    return ""


def parse_timestamp(value: Any) -> Optional[datetime.datetime]:
    """Convert an epoch (seconds or milliseconds) or ISO-8601 value to UTC.

    Returns None when the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            value = float(stripped)
        except ValueError:
            try:
                parsed = datetime.datetime.fromisoformat(stripped.replace("Z", "+00:00"))
            except ValueError:
                return None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=datetime.timezone.utc)
            return parsed.astimezone(datetime.timezone.utc)

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e10 else value  # milliseconds
        try:
            return datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    return None


def truncate_content(content: str,
                     max_length: Optional[int] = None,
                     marker: Optional[str] = None) -> str:
    config = get_config()
    if max_length is None:
        max_length = config.max_content_length
    if marker is None:
        marker = config.truncation_marker

    if len(content) <= max_length:
        return content
    return content[:max_length] + marker


def truncate_long_messages(messages: Conversation,
                           max_length: Optional[int] = None,
                           marker: Optional[str] = None) -> List[Message]:
    """Cap every message's content at the configured length.

    Over-long messages are replaced by copies; the input list is not modified.
    """
    result = []
    for msg in messages:
        content = msg.get("content")
        if isinstance(content, str):
            truncated = truncate_content(content, max_length, marker)
            if truncated is not content:
                logger.debug(f"Truncated {msg.get('role')} message from {len(content)} characters")
                msg = {**msg, "content": truncated}
        result.append(msg)
    return result
