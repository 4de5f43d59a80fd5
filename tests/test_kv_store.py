#!/usr/bin/env python3
"""
Unit tests for KeyValueStore and KeyValueProbe.
"""

import json
import pathlib
import sqlite3
import tempfile
from unittest.mock import MagicMock

import pytest

from chatshare.domain.errors import DatabaseNotFoundError
from chatshare.domain.kv_store import KeyValueProbe, KeyValueStore
from chatshare.domain.models import StoreRecord
from chatshare.domain.shape_parsers import looks_like_chat_data


@pytest.fixture
def db_path(make_store):
    with tempfile.TemporaryDirectory() as tmpdir:
        path = make_store(
            pathlib.Path(tmpdir) / "state.vscdb",
            items={
                "chat.data": {"messages": [{"role": "user", "text": "hi"}]},
                "empty.key": "",
                "aiChat.broken": "not json",
                "aiChat.other": {"settings": True},
                "conversation.cache": {"conversation": [{"role": "user", "text": "found"}]},
                "unrelated": {"messages": []},
            },
            disk_kv={"bubbleId:abc": b'{"text": "bytes value"}'},
        )
        yield path


class TestKeyValueStore:
    """Test cases for KeyValueStore."""

    def test_missing_file(self):
        """Test opening a database file that does not exist."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = KeyValueStore(pathlib.Path(tmpdir) / "nope.vscdb")
            with pytest.raises(DatabaseNotFoundError):
                store.open()
            assert not store.is_open

    def test_get(self, db_path):
        """Test exact key lookups, including missing and empty values."""
        with KeyValueStore(db_path) as store:
            record = store.get("ItemTable", "chat.data")
            assert record.key == "chat.data"
            assert record.parse() == {"messages": [{"role": "user", "text": "hi"}]}
            assert store.get("ItemTable", "missing") is None
            assert store.get("ItemTable", "empty.key") is None

    def test_get_decodes_blob_values(self, db_path):
        """Test that BLOB values are decoded to text."""
        with KeyValueStore(db_path) as store:
            record = store.get("cursorDiskKV", "bubbleId:abc")
            assert record.parse() == {"text": "bytes value"}

    def test_tables(self, db_path):
        """Test listing and checking tables."""
        with KeyValueStore(db_path) as store:
            assert store.table_names() == {"ItemTable", "cursorDiskKV"}
            assert store.has_table("cursorDiskKV")
            assert not store.has_table("missing")

    def test_scan(self, db_path):
        """Test key pattern scans and their limit."""
        with KeyValueStore(db_path) as store:
            keys = [r.key for r in store.scan("ItemTable", ["chat", "conversation"])]
            assert sorted(keys) == ["aiChat.broken", "aiChat.other", "chat.data", "conversation.cache"]
            assert len(store.scan("ItemTable", ["chat", "conversation"], limit=2)) == 2
            assert store.scan("ItemTable", []) == []

    def test_store_is_read_only(self, db_path):
        """Test that the store rejects writes."""
        with KeyValueStore(db_path) as store:
            with pytest.raises(sqlite3.OperationalError):
                store._con.execute("DELETE FROM ItemTable")

    def test_invalid_table_name(self, db_path):
        """Test that table names must be identifiers."""
        with KeyValueStore(db_path) as store:
            with pytest.raises(ValueError):
                store.get("ItemTable; DROP TABLE ItemTable", "x")

    def test_closed_after_exception(self, db_path):
        """Test that the connection is released when the body raises."""
        store = KeyValueStore(db_path)
        with pytest.raises(RuntimeError):
            with store:
                assert store.is_open
                raise RuntimeError("boom")
        assert not store.is_open

    def test_close_errors_are_swallowed(self, db_path):
        """Test that a failing close is logged and the handle released."""
        store = KeyValueStore(db_path).open()
        real_con = store._con
        store._con = MagicMock()
        store._con.close.side_effect = sqlite3.ProgrammingError("close failed")
        store.close()
        assert not store.is_open
        real_con.close()

    def test_query_on_closed_store(self, db_path):
        """Test querying a store that was never opened."""
        with pytest.raises(sqlite3.ProgrammingError):
            KeyValueStore(db_path).get("ItemTable", "chat.data")


class TestKeyValueProbe:
    """Test cases for KeyValueProbe."""

    def test_first_known_key_wins(self, db_path):
        """Test that the first present known key is returned."""
        probe = KeyValueProbe(["missing", "chat.data", "conversation.cache"], ["chat"], looks_like_chat_data)
        with KeyValueStore(db_path) as store:
            assert probe.probe(store, "ItemTable").key == "chat.data"

    def test_scan_fallback_skips_invalid_candidates(self, db_path):
        """Test that unparseable and unrecognized candidates are skipped."""
        probe = KeyValueProbe(["missing"], ["aiChat", "conversation"], looks_like_chat_data)
        with KeyValueStore(db_path) as store:
            assert probe.probe(store, "ItemTable").key == "conversation.cache"

    def test_nothing_found(self, db_path):
        """Test a probe with no matching key and no recognized candidate."""
        probe = KeyValueProbe(["missing"], ["aiChat"], looks_like_chat_data)
        with KeyValueStore(db_path) as store:
            assert probe.probe(store, "ItemTable") is None

    def test_scan_limit(self):
        """Test that the scan uses the default candidate limit."""
        store = MagicMock()
        store.get.return_value = None
        store.scan.return_value = [StoreRecord("k", json.dumps({"tabs": [{}]}))]
        probe = KeyValueProbe(["a"], ["chat"], looks_like_chat_data)
        assert probe.probe(store, "ItemTable").key == "k"
        store.scan.assert_called_once_with("ItemTable", ("chat",), 20)
