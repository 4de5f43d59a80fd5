#!/usr/bin/env python3
"""
Locate Cursor's workspace storage and pick the workspace in use.

Cursor keeps one directory per opened project under
``<root>/User/workspaceStorage/<id>/state.vscdb`` and a shared database under
``<root>/User/globalStorage/state.vscdb``. The workspace whose database was
written most recently is taken to be the active one.
"""

from __future__ import annotations

import datetime
import logging
import os
import pathlib
import platform
from typing import List, Optional

from ..config import get_config
from .errors import (
    NoUsableWorkspaceError,
    NoWorkspaceFoundError,
    UnsupportedPlatformError,
    WorkspaceStorageNotFoundError,
)
from .models import WorkspaceDescriptor

logger = logging.getLogger(__name__)

STATE_DB_NAME = "state.vscdb"
WSL_DEFAULT_WINDOWS_HOME = "/mnt/c/Users/Public"

# Workspaces without a database rank behind every real one
NEVER_MODIFIED = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


def is_wsl() -> bool:
    try:
        return "microsoft" in pathlib.Path("/proc/version").read_text(encoding="utf-8").lower()
    except OSError:
        return False


def wsl_windows_home() -> pathlib.Path:
    """Windows profile directory as seen from inside WSL."""
    try:
        lines = pathlib.Path("/etc/wsl.conf").read_text(encoding="utf-8").splitlines()
    except OSError:
        return pathlib.Path(WSL_DEFAULT_WINDOWS_HOME)
    for line in lines:
        if line.startswith("root") and "=" in line:
            value = line.split("=", 1)[1].strip()
            if value:
                return pathlib.Path(value)
    return pathlib.Path(WSL_DEFAULT_WINDOWS_HOME)


class WorkspaceLocator:
    """Find Cursor workspace databases on the local machine."""

    def __init__(self, storage_root: Optional[pathlib.Path] = None):
        """
        Args:
            storage_root: Workspace storage directory to use instead of the
                platform default (falls back to the configured override).
        """
        self._storage_root = storage_root

    def get_storage_root(self) -> pathlib.Path:
        """Return Cursor's application data directory for this platform.

        Raises:
            UnsupportedPlatformError: On an operating system Cursor does not ship for.
        """
        h = pathlib.Path.home()
        s = platform.system()
        if s == "Darwin":
            return h / "Library" / "Application Support" / "Cursor"
        if s == "Windows":
            appdata = os.environ.get("APPDATA")
            base = pathlib.Path(appdata) if appdata else h / "AppData" / "Roaming"
            return base / "Cursor"
        if s == "Linux":
            if is_wsl():
                return wsl_windows_home() / "AppData" / "Roaming" / "Cursor"
            return h / ".config" / "Cursor"
        raise UnsupportedPlatformError(f"Unsupported platform: {s}")

    def get_workspace_storage_path(self) -> pathlib.Path:
        """Return the workspace storage directory.

        Raises:
            WorkspaceStorageNotFoundError: If the directory does not exist.
        """
        path = self._storage_root or get_config().storage_root
        if path is None:
            path = self.get_storage_root() / "User" / "workspaceStorage"
        path = pathlib.Path(path)
        if not path.is_dir():
            logger.error(f"Workspace storage directory not found: {path}")
            raise WorkspaceStorageNotFoundError(path)
        return path

    def workspace_database_path(self, workspace_id: str) -> pathlib.Path:
        return self.get_workspace_storage_path() / workspace_id / STATE_DB_NAME

    def global_database_path(self) -> pathlib.Path:
        return self.get_workspace_storage_path().parent / "globalStorage" / STATE_DB_NAME

    def list_workspaces(self) -> List[WorkspaceDescriptor]:
        """Describe every workspace directory, with or without a database."""
        storage = self.get_workspace_storage_path()
        workspaces = []
        for folder in sorted(p for p in storage.iterdir() if p.is_dir()):
            db = folder / STATE_DB_NAME
            if db.is_file():
                mtime = datetime.datetime.fromtimestamp(db.stat().st_mtime, tz=datetime.timezone.utc)
                workspaces.append(WorkspaceDescriptor(folder.name, str(folder), str(db), mtime))
            else:
                workspaces.append(WorkspaceDescriptor(folder.name, str(folder), None, NEVER_MODIFIED))
        return workspaces

    def find_recent_workspace(self) -> WorkspaceDescriptor:
        """Return the workspace whose database was modified most recently.

        Raises:
            WorkspaceStorageNotFoundError: If the storage directory is missing.
            NoWorkspaceFoundError: If it contains no workspace directories.
            NoUsableWorkspaceError: If no workspace has a database file.
        """
        storage = self.get_workspace_storage_path()
        logger.info(f"Workspace storage path: {storage}")

        workspaces = self.list_workspaces()
        if not workspaces:
            raise NoWorkspaceFoundError(storage)
        logger.info(f"Found {len(workspaces)} workspace directories")

        usable = [ws for ws in workspaces if ws.database_path]
        if not usable:
            raise NoUsableWorkspaceError(storage, STATE_DB_NAME)

        usable.sort(key=lambda ws: ws.last_modified, reverse=True)
        recent = usable[0]
        logger.info(f"Most recently active workspace: {recent.id}, database: {recent.database_path}")
        return recent
