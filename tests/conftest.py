#!/usr/bin/env python3
"""
Pytest configuration and fixtures.
"""

import json
import os
import pathlib
import sqlite3
import sys
import tempfile

import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(pathlib.Path(__file__).parent.parent))

from chatshare.config import reset_config


def _encode(value):
    if value is None or isinstance(value, (str, bytes)):
        return value
    return json.dumps(value)


def create_store(db_path, items=None, disk_kv=None):
    """Create a state.vscdb-style database.

    ``items`` fills ItemTable (always created); ``disk_kv`` creates and fills
    cursorDiskKV. Non-string values are stored as JSON.
    """
    db_path = pathlib.Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(str(db_path))
    try:
        cur = con.cursor()
        cur.execute("CREATE TABLE IF NOT EXISTS ItemTable (key TEXT PRIMARY KEY, value BLOB)")
        for key, value in (items or {}).items():
            cur.execute("INSERT INTO ItemTable (key, value) VALUES (?, ?)", (key, _encode(value)))
        if disk_kv is not None:
            cur.execute("CREATE TABLE IF NOT EXISTS cursorDiskKV (key TEXT PRIMARY KEY, value BLOB)")
            for key, value in disk_kv.items():
                cur.execute("INSERT INTO cursorDiskKV (key, value) VALUES (?, ?)", (key, _encode(value)))
        con.commit()
    finally:
        con.close()
    return db_path


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts from the built-in configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_store():
    return create_store


@pytest.fixture
def cursor_home():
    """A fake Cursor data directory with an empty workspaceStorage."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = pathlib.Path(tmpdir) / "Cursor"
        (root / "User" / "workspaceStorage").mkdir(parents=True)
        (root / "User" / "globalStorage").mkdir(parents=True)
        yield root


@pytest.fixture
def workspace_storage(cursor_home):
    return cursor_home / "User" / "workspaceStorage"


@pytest.fixture
def add_workspace(workspace_storage):
    """Create a workspace directory, optionally with a database and mtime."""
    def _add(ws_id, items=None, disk_kv=None, mtime=None, with_db=True):
        folder = workspace_storage / ws_id
        folder.mkdir(parents=True, exist_ok=True)
        if with_db:
            db = create_store(folder / "state.vscdb", items, disk_kv)
            if mtime is not None:
                os.utime(db, (mtime, mtime))
        return folder
    return _add


@pytest.fixture
def add_global_store(cursor_home):
    def _add(items=None, disk_kv=None):
        return create_store(cursor_home / "User" / "globalStorage" / "state.vscdb", items, disk_kv)
    return _add
