#!/usr/bin/env python3
"""
Tests for the preview command line.
"""

import json
import pathlib
import tempfile
from unittest.mock import patch

import pytest

from chatshare import cli


@pytest.fixture
def env_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = pathlib.Path(tmpdir) / ".env"
        path.write_text("")
        with patch.dict('os.environ', {}, clear=True):
            yield str(path)


class TestCli:
    """Test cases for cli.main."""

    def test_json_output(self, env_file, workspace_storage, add_workspace, capsys):
        """Test that --json prints the share payload of the recent workspace."""
        add_workspace("ws", items={"chat.data": {"messages": [
            {"role": "user", "text": "q"}, {"role": "assistant", "text": "a"}]}})
        code = cli.main(["--json", "--title", "Demo", "--env-file", env_file,
                         "--workspace-storage", str(workspace_storage)])
        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload == {"type": "chat", "title": "Demo", "messages": [
            {"role": "user", "text": "q"}, {"role": "assistant", "text": "a"}]}

    def test_table_output(self, env_file, workspace_storage, add_workspace, capsys):
        """Test that the default output renders a table of messages."""
        add_workspace("ws", items={"chat.data": {"messages": [{"role": "user", "text": "hello table"}]}})
        code = cli.main(["--env-file", env_file, "--workspace-storage", str(workspace_storage)])
        assert code == 0
        out = capsys.readouterr().out
        assert "Found 1 messages" in out
        assert "hello table" in out

    def test_empty_workspace(self, env_file, workspace_storage, add_workspace, capsys):
        """Test the notice shown when no conversation is stored."""
        add_workspace("ws", items={"editor.state": {}})
        code = cli.main(["--env-file", env_file, "--workspace-storage", str(workspace_storage)])
        assert code == 0
        assert "No conversation found" in capsys.readouterr().out

    def test_missing_storage(self, env_file, workspace_storage, capsys):
        """Test that environment errors are reported with exit status 1."""
        code = cli.main(["--json", "--env-file", env_file,
                         "--workspace-storage", str(workspace_storage / "missing")])
        assert code == 1
        assert "Cannot read Cursor storage" in capsys.readouterr().out


class TestRenderConversation:
    """Test cases for render_conversation."""

    def test_long_content_is_shortened(self):
        """Test that long message previews are cut to the preview length."""
        table = cli.render_conversation([{"role": "user", "content": "word " * 100}])
        assert table.row_count == 1
        cell = table.columns[2]._cells[0]
        assert len(cell) == cli.PREVIEW_LENGTH
        assert cell.endswith("...")
