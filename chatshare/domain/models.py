"""
Transient records passed between the extraction stages.

Messages are plain dicts with the keys ``role``, ``content`` and, when the
source carried one, ``timestamp``. The other records are named tuples that
live only for the duration of one extraction call.
"""

from __future__ import annotations

import datetime
import json
from typing import Any, Dict, List, NamedTuple, Optional

ROLES = ("user", "assistant", "system", "function")

Message = Dict[str, Any]
Conversation = List[Message]


def make_message(role: str, content: str,
                 timestamp: Optional[datetime.datetime] = None) -> Message:
    message = {"role": role, "content": content}
    if timestamp is not None:
        message["timestamp"] = timestamp
    return message


class WorkspaceDescriptor(NamedTuple):
    id: str
    path: str
    database_path: Optional[str]
    last_modified: datetime.datetime


class StoreRecord(NamedTuple):
    key: str
    raw_value: str

    def parse(self) -> Any:
        """Decode the JSON value.

        Raises:
            json.JSONDecodeError: If the value is not valid JSON.
        """
        return json.loads(self.raw_value)


class ComposerDescriptor(NamedTuple):
    id: str
    last_updated_at: Optional[float]
