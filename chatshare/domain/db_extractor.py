#!/usr/bin/env python3
"""
Extraction from Cursor's local SQLite state when no context is available.

Pipeline, stopping at the first stage that yields messages:

1. pick the most recently active workspace
2. probe its ``ItemTable`` for a chat-data record (known keys, then key scan)
3. scan its ``cursorDiskKV`` table, when present
4. resolve the workspace's latest composer against the global store
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Optional

from .composer_resolver import ComposerResolver
from .kv_store import DISK_KV_TABLE, ITEM_TABLE, KeyValueProbe, KeyValueStore
from .models import Conversation
from .shape_parsers import looks_like_chat_data, parse_chat_data
from .workspace_locator import WorkspaceLocator

logger = logging.getLogger(__name__)

CHAT_DATA_KEYS = (
    "workbench.panel.chat.view.chat.chatdata",
    "workbench.panel.aichat.view.aichat.chatdata",
    "aichat.chatData",
    "aichat.history",
    "chat.history",
    "chat.data",
)
CHAT_SCAN_TERMS = ("chat", "conversation", "history")
DISK_KV_SCAN_TERMS = ("chat", "conversation")


class DbExtractionEngine:
    """Read the active conversation out of the local workspace databases."""

    def __init__(self,
                 locator: Optional[WorkspaceLocator] = None,
                 composer_resolver: Optional[ComposerResolver] = None):
        self.locator = locator or WorkspaceLocator()
        self.composer_resolver = composer_resolver or ComposerResolver(self.locator)
        self.chat_probe = KeyValueProbe(CHAT_DATA_KEYS, CHAT_SCAN_TERMS, looks_like_chat_data)

    def extract(self) -> Conversation:
        """Extract the conversation of the most recently active workspace.

        Raises:
            ExtractionEnvironmentError: If no usable workspace database exists.
        """
        workspace = self.locator.find_recent_workspace()
        messages = self.read_workspace_data(workspace.id)
        if messages:
            logger.info(f"Read {len(messages)} messages from the database")
        else:
            logger.warning(f"No conversation found in workspace {workspace.id}")
        return messages

    def read_workspace_data(self, workspace_id: str) -> Conversation:
        db_path = self.locator.workspace_database_path(workspace_id)
        logger.info(f"Opening database: {db_path}")

        messages: Conversation = []
        try:
            with KeyValueStore(db_path) as store:
                tables = store.table_names()
                logger.info(f"Tables in database: {', '.join(sorted(tables))}")
                if ITEM_TABLE in tables:
                    messages = self._read_item_table(store)
                if not messages and DISK_KV_TABLE in tables:
                    messages = self._read_disk_kv(store)
        except sqlite3.Error as e:
            logger.error(f"Database error while reading {db_path}: {e}")
            messages = []

        if messages:
            return messages

        logger.info("No chat data in the workspace store, looking for composer data")
        messages = self.composer_resolver.resolve(workspace_id)
        if messages:
            logger.info(f"Extracted {len(messages)} messages from composer data")
        return messages

    def _read_item_table(self, store: KeyValueStore) -> Conversation:
        record = self.chat_probe.probe(store, ITEM_TABLE)
        if record is None:
            return []
        messages = parse_chat_data(record.raw_value)
        if messages:
            logger.info(f"Extracted {len(messages)} messages from {ITEM_TABLE} key {record.key}")
        return messages

    def _read_disk_kv(self, store: KeyValueStore) -> Conversation:
        logger.info(f"Querying {DISK_KV_TABLE}")
        for record in store.scan(DISK_KV_TABLE, DISK_KV_SCAN_TERMS):
            logger.debug(f"Trying to parse {record.key}")
            try:
                data = record.parse()
            except (json.JSONDecodeError, ValueError):
                continue
            if not looks_like_chat_data(data):
                continue
            messages = parse_chat_data(data)
            if messages:
                logger.info(f"Extracted {len(messages)} messages from {DISK_KV_TABLE} key {record.key}")
                return messages
        return []
