#!/usr/bin/env python3
"""
Unit tests for configuration loading.
"""

import pathlib
import tempfile
from unittest.mock import patch

import pytest

from chatshare.config import (
    DEFAULT_MAX_CONTENT_LENGTH,
    ExtractorConfig,
    get_config,
    load_config,
    reset_config,
    update_config,
)


class TestLoadConfig:
    """Test cases for load_config."""

    def test_defaults(self):
        """Test that an empty environment gives the built-in defaults."""
        with patch.dict('os.environ', {}, clear=True), tempfile.TemporaryDirectory() as tmpdir:
            env_file = pathlib.Path(tmpdir) / ".env"
            env_file.write_text("")
            config = load_config(env_file)
        assert config == ExtractorConfig()
        assert get_config() is config

    def test_env_file(self):
        """Test that settings are read from an explicit .env file."""
        with patch.dict('os.environ', {}, clear=True), tempfile.TemporaryDirectory() as tmpdir:
            env_file = pathlib.Path(tmpdir) / ".env"
            env_file.write_text(
                "CHATSHARE_DEBUG=true\n"
                "CHATSHARE_MAX_CONTENT_LENGTH=500\n"
                f"CHATSHARE_WORKSPACE_STORAGE={tmpdir}\n"
            )
            config = load_config(env_file)
            assert config.debug is True
            assert config.max_content_length == 500
            assert config.storage_root == pathlib.Path(tmpdir)

    def test_process_environment_wins_over_env_file(self):
        """Test that variables already set are not overridden by the .env file."""
        with patch.dict('os.environ', {"CHATSHARE_MAX_CONTENT_LENGTH": "42"}, clear=True), \
             tempfile.TemporaryDirectory() as tmpdir:
            env_file = pathlib.Path(tmpdir) / ".env"
            env_file.write_text("CHATSHARE_MAX_CONTENT_LENGTH=500\n")
            assert load_config(env_file).max_content_length == 42

    @pytest.mark.parametrize("raw", ["abc", "0", "-5"])
    def test_invalid_length_falls_back(self, raw):
        """Test that an invalid content cap falls back to the default."""
        with patch.dict('os.environ', {"CHATSHARE_MAX_CONTENT_LENGTH": raw}, clear=True), \
             tempfile.TemporaryDirectory() as tmpdir:
            env_file = pathlib.Path(tmpdir) / ".env"
            env_file.write_text("")
            assert load_config(env_file).max_content_length == DEFAULT_MAX_CONTENT_LENGTH

    @pytest.mark.parametrize("raw,expected", [("1", True), ("on", True), ("no", False), ("", False)])
    def test_debug_flag(self, raw, expected):
        """Test the accepted spellings of the debug flag."""
        with patch.dict('os.environ', {"CHATSHARE_DEBUG": raw}, clear=True), \
             tempfile.TemporaryDirectory() as tmpdir:
            env_file = pathlib.Path(tmpdir) / ".env"
            env_file.write_text("")
            assert load_config(env_file).debug is expected


class TestUpdateConfig:
    """Test cases for update_config and reset_config."""

    def test_update_and_reset(self):
        """Test updating the configuration and restoring the defaults."""
        update_config(debug=True, storage_root="/tmp/storage")
        assert get_config().debug is True
        assert get_config().storage_root == pathlib.Path("/tmp/storage")
        reset_config()
        assert get_config() == ExtractorConfig()

    def test_unknown_key(self):
        """Test that unknown settings are rejected."""
        with pytest.raises(TypeError):
            update_config(verbose=True)

    def test_non_positive_length(self):
        """Test that a non-positive content cap is rejected and not applied."""
        with pytest.raises(ValueError):
            update_config(max_content_length=0)
        assert get_config().max_content_length == DEFAULT_MAX_CONTENT_LENGTH
