#!/usr/bin/env python3
"""
Resolve the most recent composer session of a workspace.

The workspace store only keeps an index of composers (id, name, timestamps);
the conversation itself lives in the global store under
``composerData:<composerId>``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from .kv_store import DISK_KV_TABLE, ITEM_TABLE, KeyValueProbe, KeyValueStore
from .models import ComposerDescriptor, Conversation
from .shape_parsers import looks_like_composer_index, parse_composer_content
from .workspace_locator import WorkspaceLocator

logger = logging.getLogger(__name__)

COMPOSER_INDEX_KEYS = (
    "composer.composerData",
    "cursor.composerData",
    "cursorComposerData",
    "composer.data",
    "workbench.panel.composer.data",
    "workbench.panel.aichat.view.aichat.chatdata",
    "workbench.panel.chat.view.chat.chatdata",
)
COMPOSER_SCAN_TERMS = ("composer", "chat", "conversation")


def composer_data_key(composer_id: str) -> str:
    return f"composerData:{composer_id}"


def composers_from_index(index: Any) -> List[Dict[str, Any]]:
    """Return the composer entries of a decoded index, objects only."""
    composers = None
    if isinstance(index, dict):
        composers = index.get("allComposers") or index.get("composers")
    elif isinstance(index, list):
        composers = index
    if not isinstance(composers, list):
        return []
    return [c for c in composers if isinstance(c, dict)]


def _recency_key(composer: Dict[str, Any]):
    updated = composer.get("lastUpdatedAt")
    if isinstance(updated, (int, float)) and not isinstance(updated, bool):
        return (0, -updated)
    return (1, 0)


def select_recent_composer(composers: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Pick the entry with the greatest ``lastUpdatedAt``.

    Ties keep their original order; entries without a numeric value come last.
    """
    if not composers:
        return None
    return sorted(composers, key=_recency_key)[0]


def describe_composer(composer: Dict[str, Any]) -> Optional[ComposerDescriptor]:
    composer_id = composer.get("composerId") or composer.get("id")
    if not composer_id:
        return None
    updated = composer.get("lastUpdatedAt")
    if not isinstance(updated, (int, float)) or isinstance(updated, bool):
        updated = None
    return ComposerDescriptor(str(composer_id), updated)


class ComposerResolver:
    """Cross-reference a workspace's composer index with the global store."""

    def __init__(self, locator: Optional[WorkspaceLocator] = None):
        self.locator = locator or WorkspaceLocator()
        self.index_probe = KeyValueProbe(COMPOSER_INDEX_KEYS, COMPOSER_SCAN_TERMS,
                                         looks_like_composer_index)

    def find_composer_index(self, store: KeyValueStore) -> Optional[Any]:
        """Return the decoded composer index of an open workspace store."""
        if not store.has_table(ITEM_TABLE):
            logger.warning(f"{store.db_path} has no {ITEM_TABLE}")
            return None

        record = self.index_probe.probe(store, ITEM_TABLE)
        if record is None:
            logger.warning("No composer data found")
            return None
        try:
            return record.parse()
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Failed to parse composer index {record.key}: {e}")
            return None

    def fetch_composer_content(self, composer_id: str) -> Optional[Any]:
        """Fetch and decode one composer record from the global store."""
        global_db = self.locator.global_database_path()
        logger.info(f"Global database path: {global_db}")
        if not global_db.is_file():
            logger.warning(f"Global database does not exist: {global_db}")
            return None

        with KeyValueStore(global_db) as store:
            table = DISK_KV_TABLE if store.has_table(DISK_KV_TABLE) else ITEM_TABLE
            key = composer_data_key(composer_id)
            logger.info(f"Using table {table}, key {key}")
            record = store.get(table, key)

        if record is None:
            logger.warning(f"Composer content not found: {key}")
            return None
        logger.info(f"Found composer content, size: {len(record.raw_value)} bytes")
        try:
            return record.parse()
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Failed to parse composer content {key}: {e}")
            return None

    def resolve(self, workspace_id: str) -> Conversation:
        """Return the messages of the workspace's most recently updated composer.

        Raises:
            ExtractionEnvironmentError: If the workspace storage or database is missing.
        """
        db_path = self.locator.workspace_database_path(workspace_id)
        logger.info(f"Looking up composer data, workspace database: {db_path}")

        try:
            with KeyValueStore(db_path) as store:
                index = self.find_composer_index(store)
            if index is None:
                return []

            composers = composers_from_index(index)
            if not composers:
                logger.warning("Composer index lists no composers")
                return []
            logger.info(f"Found {len(composers)} composers")

            recent = select_recent_composer(composers)
            descriptor = describe_composer(recent)
            if descriptor is None:
                logger.warning("Most recent composer has no id")
                return []
            logger.info(f"Most recent composer: {descriptor.id} (lastUpdatedAt={descriptor.last_updated_at})")

            content = self.fetch_composer_content(descriptor.id)
            if content is None:
                return []
            return parse_composer_content(content, recent)
        except sqlite3.Error as e:
            logger.error(f"Database error while resolving composer data: {e}")
            return []
