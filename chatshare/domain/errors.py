"""
Exception taxonomy for conversation extraction.

Only environment problems are raised to callers. Unparseable or unrecognized
data is handled inside the component that reads it.
"""


class ChatShareError(Exception):
    """Base class for all chatshare errors."""


class ExtractionEnvironmentError(ChatShareError):
    """The host's storage cannot be used for this extraction attempt."""


class UnsupportedPlatformError(ExtractionEnvironmentError):
    pass


class WorkspaceStorageNotFoundError(ExtractionEnvironmentError):
    """The workspace storage root directory does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Workspace storage directory not found: {path}")


class NoWorkspaceFoundError(ExtractionEnvironmentError):
    """The storage root holds no workspace directories."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"No workspace directories found in {path}")


class NoUsableWorkspaceError(ExtractionEnvironmentError):
    """No workspace directory contains a state database."""

    def __init__(self, path, db_name):
        self.path = path
        super().__init__(f"No workspace in {path} contains {db_name}")


class DatabaseNotFoundError(ExtractionEnvironmentError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"Database file not found: {path}")


class ShareError(ChatShareError):
    """The sharing service rejected or mangled a publish request."""
