"""
Contract with the remote sharing service.

This package only prepares the payload; publishing it is left to a
``ConversationPublisher`` implementation supplied by the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .errors import ShareError
from .models import Conversation

DEFAULT_TITLE = "Untitled conversation"


def to_share_messages(messages: Conversation) -> List[Dict[str, str]]:
    return [{"role": msg["role"], "text": msg["content"]} for msg in messages]


def build_share_payload(title: str, messages: Conversation) -> Dict[str, Any]:
    """Build the body the sharing service accepts for a new shared chat."""
    return {
        "type": "chat",
        "title": title or DEFAULT_TITLE,
        "messages": to_share_messages(messages),
    }


def share_url_for(base_url: str, share_id: str) -> str:
    """Fallback share URL when the service does not return one."""
    return f"{base_url.rstrip('/')}/share/{share_id}"


class ConversationPublisher(ABC):
    """Stores a conversation remotely and returns where it can be viewed."""

    @abstractmethod
    def publish(self, payload: Dict[str, Any]) -> Dict[str, str]:
        """Publish a payload built by ``build_share_payload``.

        Returns:
            Dict with keys ``shareId`` and ``shareUrl``.
        """
        pass


def share_conversation(publisher: ConversationPublisher,
                       title: str,
                       messages: Conversation,
                       base_url: str = "") -> Dict[str, str]:
    """Publish a conversation and normalize the service's reply.

    Raises:
        ShareError: If the publisher does not return a share id.
    """
    reply = publisher.publish(build_share_payload(title, messages)) or {}
    share_id = reply.get("shareId")
    if not share_id:
        raise ShareError("Sharing service did not return a shareId")
    share_url = reply.get("shareUrl") or (share_url_for(base_url, share_id) if base_url else "")
    return {"shareId": share_id, "shareUrl": share_url}
