"""Unit tests for utilities."""

import json

import pytest
import structlog

from blockmark.utils.ids import IdGenerator
from blockmark.utils.logging import configure_logging, get_logger, resolve_log_level


class TestIdGenerator:
    """Test block id generation."""

    def test_ids_are_unique(self):
        """Test that a generator never repeats an id."""
        ids = IdGenerator(length=4)
        issued = [ids.next_id() for _ in range(500)]

        assert len(set(issued)) == len(issued)

    def test_id_format(self):
        """Test length and prefix."""
        block_id = IdGenerator(length=6, prefix="blk-").next_id()

        assert block_id.startswith("blk-")
        assert len(block_id) == 10
        int(block_id[4:], 16)  # hex digits

    def test_callable(self):
        """Test that the generator can be called directly."""
        ids = IdGenerator()
        block_id = ids()

        assert block_id in ids

    def test_reserve(self):
        """Test that reserved ids count as issued."""
        ids = IdGenerator()
        ids.reserve(["abc", "def"])

        assert "abc" in ids
        assert "zzz" not in ids

    @pytest.mark.parametrize("length", [3, 33])
    def test_invalid_length(self, length):
        """Test id length limits."""
        with pytest.raises(ValueError, match="between 4 and 32"):
            IdGenerator(length=length)


class TestLogging:
    """Test structured logging setup."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_default_level(self, monkeypatch):
        """Test INFO as default level."""
        monkeypatch.delenv("BLOCKMARK_LOG_LEVEL", raising=False)
        assert resolve_log_level() == "INFO"

    def test_level_from_environment(self, monkeypatch):
        """Test BLOCKMARK_LOG_LEVEL."""
        monkeypatch.setenv("BLOCKMARK_LOG_LEVEL", "warning")
        assert resolve_log_level() == "WARNING"

    def test_unknown_level_falls_back(self, monkeypatch):
        """Test that unknown levels fall back to INFO."""
        monkeypatch.setenv("BLOCKMARK_LOG_LEVEL", "LOUD")
        assert resolve_log_level() == "INFO"

    def test_verbose_forces_debug(self, monkeypatch):
        """Test that verbose wins over the environment."""
        monkeypatch.setenv("BLOCKMARK_LOG_LEVEL", "ERROR")
        assert resolve_log_level(verbose=True) == "DEBUG"

    def test_configure_logging_writes_json(self, tmp_path, monkeypatch):
        """Test that events land in the log file as JSON lines."""
        monkeypatch.delenv("BLOCKMARK_LOG_LEVEL", raising=False)
        log_file = configure_logging(log_dir=tmp_path)

        get_logger("blockmark.test").info("block_split", block_id="b1")

        entry = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert entry["event"] == "block_split"
        assert entry["block_id"] == "b1"
        assert entry["level"] == "info"
