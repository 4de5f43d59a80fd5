#!/usr/bin/env python3
"""
Recognizers for the known layouts of Cursor conversation data.

Every parser takes the whole context (or stored record) and returns either a
non-empty list of messages or an empty list meaning "not this layout". None
of them raise on malformed input. Messages whose content is blank after
stripping are always dropped.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import get_config
from .message_normalizer import (
    coerce_content,
    coerce_flat_content,
    coerce_stored_text,
    determine_role,
    parse_timestamp,
)
from .models import ROLES, Conversation, make_message

logger = logging.getLogger(__name__)


def format_sample(value: Any) -> str:
    """Pretty JSON of a record for debug logs, or its type name when it cannot be dumped."""
    try:
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError, RecursionError):
        return f"<unprintable {type(value).__name__}>"


def _build_messages(items: List[Any],
                    source: str,
                    role_of: Callable[[Any], str] = determine_role,
                    content_of: Callable[[Any], str] = coerce_content,
                    with_timestamp: bool = False) -> Conversation:
    """Map message-like records to messages, dropping blank ones."""
    if items and get_config().debug:
        logger.debug(f"{source}[0] structure: {format_sample(items[0])}")

    messages = []
    for item in items:
        content = content_of(item)
        if not isinstance(content, str) or not content.strip():
            continue
        timestamp = parse_timestamp(item.get("timestamp")) if with_timestamp and isinstance(item, dict) else None
        messages.append(make_message(role_of(item), content, timestamp))
    return messages


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


################################################################################
# In-memory context layouts
################################################################################
def _chat_history_role(msg: Any) -> str:
    if not isinstance(msg, dict):
        return "assistant"
    role = msg.get("role")
    if isinstance(role, str) and role in ROLES:
        return role
    return "user" if msg.get("isUser") else "assistant"


def parse_chat_history(context: Any) -> Conversation:
    """``{"chatHistory": [...]}``; falls back to locally cached history."""
    if not isinstance(context, dict):
        return []
    history = context.get("chatHistory")
    if not isinstance(history, list):
        return parse_local_chat_history(context)

    logger.debug(f"Trying chatHistory, length: {len(history)}")
    messages = _build_messages(history, "chatHistory",
                               role_of=_chat_history_role,
                               content_of=coerce_flat_content)
    if messages:
        logger.info(f"Extracted {len(messages)} messages from chatHistory")
    return messages


def parse_local_chat_history(context: Dict[str, Any]) -> Conversation:
    """History the host cached alongside a workspace or composer reference."""
    workspace = context.get("workspace")
    composer = context.get("composer")
    workspace_id = context.get("workspaceId") or (workspace.get("id") if isinstance(workspace, dict) else None)
    composer_id = context.get("composerId") or (composer.get("id") if isinstance(composer, dict) else None)

    if not workspace_id and not composer_id:
        return []

    logger.info(f"Reading cached history, workspaceId={workspace_id}, composerId={composer_id}")

    if context.get("localContent"):
        return parse_local_content(context["localContent"])

    conversations = context.get("conversations")
    if isinstance(conversations, list):
        logger.debug(f"Reading cached conversations, length: {len(conversations)}")
        items = []
        for conversation in conversations:
            if isinstance(conversation, dict) and isinstance(conversation.get("messages"), list):
                items.extend(conversation["messages"])
        messages = _build_messages(items, "conversations", content_of=coerce_flat_content)
        if messages:
            logger.info(f"Extracted {len(messages)} messages from cached conversations")
        return messages

    return []


def parse_local_content(content: Any) -> Conversation:
    if not content:
        return []
    if isinstance(content, str):
        return [make_message("user", content)] if content.strip() else []
    if not isinstance(content, dict):
        return []

    if isinstance(content.get("messages"), list):
        return _build_messages(content["messages"], "localContent.messages",
                               content_of=coerce_flat_content)
    if isinstance(content.get("conversation"), list):
        return _build_messages(content["conversation"], "localContent.conversation",
                               content_of=coerce_flat_content)

    text = content.get("text")
    if isinstance(text, str) and text.strip():
        return [make_message("user", text)]
    return []


def parse_conversation(context: Any) -> Conversation:
    """``{"conversation": [...]}``."""
    if not isinstance(context, dict) or not _non_empty_list(context.get("conversation")):
        return []
    logger.debug(f"Trying conversation, length: {len(context['conversation'])}")
    messages = _build_messages(context["conversation"], "conversation")
    if messages:
        logger.info(f"Extracted {len(messages)} messages from conversation")
    return messages


def parse_bubbles(context: Any) -> Conversation:
    """``{"bubbles": [...]}``."""
    if not isinstance(context, dict) or not _non_empty_list(context.get("bubbles")):
        return []
    logger.debug(f"Trying bubbles, length: {len(context['bubbles'])}")
    messages = _build_messages(context["bubbles"], "bubbles")
    if messages:
        logger.info(f"Extracted {len(messages)} messages from bubbles")
    return messages


def parse_messages_or_history(context: Any) -> Conversation:
    """``{"messages": [...]}``, or ``{"history": [...]}`` when messages is absent."""
    if not isinstance(context, dict):
        return []
    items = context.get("messages")
    source = "messages"
    if not _non_empty_list(items):
        items = context.get("history")
        source = "history"
    if not _non_empty_list(items):
        return []

    logger.debug(f"Trying {source}, length: {len(items)}")
    messages = _build_messages(items, source)
    if messages:
        logger.info(f"Extracted {len(messages)} messages from {source}")
    return messages


def parse_array_context(context: Any) -> Conversation:
    """The context itself is a list of message-like records."""
    if not _non_empty_list(context):
        return []
    logger.debug(f"Trying raw array context, length: {len(context)}")
    messages = _build_messages(context, "arrayContext")
    if messages:
        logger.info(f"Extracted {len(messages)} messages from raw array context")
    return messages


def _cursor_context_content(msg: Any) -> str:
    """Only string ``content``, ``content.text`` or ``message``; a bare ``text`` is not read."""
    if not isinstance(msg, dict):
        return ""
    content = msg.get("content")
    if isinstance(content, str) and content:
        return content
    if isinstance(content, dict) and isinstance(content.get("text"), str) and content["text"]:
        return content["text"]
    message = msg.get("message")
    return message if isinstance(message, str) else ""


def parse_cursor_context(context: Any) -> Conversation:
    """``{"cursorContext": {"messages": [...]}}`` or ``{"cursorContext": {"chat": {"messages": [...]}}}``."""
    if not isinstance(context, dict):
        return []
    cursor_context = context.get("cursorContext")
    if not isinstance(cursor_context, dict):
        return []

    logger.debug("Trying cursorContext")
    if isinstance(cursor_context.get("messages"), list):
        messages = _build_messages(cursor_context["messages"], "cursorContext.messages",
                                   content_of=_cursor_context_content)
        if messages:
            logger.info(f"Extracted {len(messages)} messages from cursorContext.messages")
            return messages

    chat = cursor_context.get("chat")
    if isinstance(chat, dict) and isinstance(chat.get("messages"), list):
        messages = _build_messages(chat["messages"], "cursorContext.chat.messages",
                                   content_of=coerce_flat_content)
        if messages:
            logger.info(f"Extracted {len(messages)} messages from cursorContext.chat.messages")
            return messages

    return []


# Priority order for in-memory contexts
CONTEXT_PARSERS: Tuple[Tuple[str, Callable[[Any], Conversation]], ...] = (
    ("chatHistory", parse_chat_history),
    ("conversation", parse_conversation),
    ("bubbles", parse_bubbles),
    ("messages/history", parse_messages_or_history),
    ("array", parse_array_context),
    ("cursorContext", parse_cursor_context),
)


################################################################################
# Stored record layouts
################################################################################
def _stored_messages(items: List[Any], source: str) -> Conversation:
    return _build_messages(items, source, content_of=coerce_stored_text, with_timestamp=True)


def parse_tabs(data: Any) -> Conversation:
    """``{"tabs": [...]}``; the last tab is the most recent one."""
    if not isinstance(data, dict) or not _non_empty_list(data.get("tabs")):
        return []
    tabs = data["tabs"]
    logger.info(f"Found {len(tabs)} chat tabs")
    recent_tab = tabs[-1]
    if not isinstance(recent_tab, dict):
        return []

    for field in ("conversation", "bubbles"):
        items = recent_tab.get(field)
        if isinstance(items, list):
            logger.info(f"Extracting tab {field}, {len(items)} entries")
            return _stored_messages(items, f"tabs[-1].{field}")
    return []


def parse_chats(data: Any) -> Conversation:
    """``{"chats": {id: {"messages": [...]}}}``; the first session wins."""
    if not isinstance(data, dict) or not isinstance(data.get("chats"), dict):
        return []
    chats = data["chats"]
    if not chats:
        return []
    logger.info(f"Found {len(chats)} chat sessions")
    chat_id = next(iter(chats))
    chat = chats[chat_id]
    if isinstance(chat, dict) and isinstance(chat.get("messages"), list):
        logger.info(f"Extracting chat session {chat_id}, {len(chat['messages'])} entries")
        return _stored_messages(chat["messages"], f"chats[{chat_id}].messages")
    return []


def parse_chat_data(chat_data: Any) -> Conversation:
    """Parse a chat-data record read from a workspace store.

    Accepts the raw JSON string or the decoded value. Layouts are tried in the
    order tabs, chats, messages, conversation.
    """
    if not chat_data:
        logger.warning("Chat data record is empty")
        return []

    data = chat_data
    if isinstance(chat_data, (str, bytes)):
        try:
            data = json.loads(chat_data)
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Failed to parse chat data JSON: {e}")
            return []

    if not isinstance(data, dict):
        logger.warning("No recognizable chat structure found")
        return []

    if _non_empty_list(data.get("tabs")):
        messages = parse_tabs(data)
        if messages:
            return messages

    if isinstance(data.get("chats"), dict) and data["chats"]:
        messages = parse_chats(data)
        if messages:
            return messages

    if isinstance(data.get("messages"), list):
        logger.info(f"Extracting messages array, {len(data['messages'])} entries")
        return _stored_messages(data["messages"], "messages")

    if isinstance(data.get("conversation"), list):
        logger.info(f"Extracting conversation array, {len(data['conversation'])} entries")
        return _stored_messages(data["conversation"], "conversation")

    logger.warning("No recognizable chat structure found")
    return []


def parse_composer_content(content: Any, composer: Optional[Dict[str, Any]] = None) -> Conversation:
    """Parse a composer record fetched from the global store.

    Uses the ``conversation`` array, then ``messages``, then a single text
    body on the record or on its index entry.
    """
    if not content:
        logger.warning("Composer content is empty")
        return []
    if not isinstance(content, dict):
        logger.warning("Composer content is not an object")
        return []

    if isinstance(content.get("conversation"), list):
        logger.info(f"Processing composer conversation, {len(content['conversation'])} entries")
        return _stored_messages(content["conversation"], "composer.conversation")

    if isinstance(content.get("messages"), list):
        logger.info(f"Processing composer messages, {len(content['messages'])} entries")
        return _stored_messages(content["messages"], "composer.messages")

    text = content.get("text")
    if not (isinstance(text, str) and text.strip()) and isinstance(composer, dict):
        text = composer.get("text")
    if isinstance(text, str) and text.strip():
        logger.info(f"Processing composer plain text, length: {len(text)}")
        return [make_message("user", text)]

    logger.warning("No message structure found in composer content")
    return []


def looks_like_chat_data(data: Any) -> bool:
    """True when a decoded value exposes one of the chat-data top-level fields."""
    return isinstance(data, dict) and any(
        data.get(field) for field in ("tabs", "chats", "messages", "conversation")
    )


def looks_like_composer_index(data: Any) -> bool:
    if isinstance(data, dict):
        return bool(data.get("allComposers") or data.get("composers"))
    if isinstance(data, list) and data:
        first = data[0]
        return isinstance(first, dict) and bool(first.get("composerId"))
    return False
