"""Tests for netsync/scribe.py"""

import csv
import re

import pytest
from loguru import logger

from netsync.scribe import CHANNELS, Scribe, note, write_lines, write_records


@pytest.fixture()
def enabled_logging():
    logger.enable("netsync")
    yield
    logger.disable("netsync")


class TestScribe:
    """Tests for the channel file sinks."""

    def test_channel_files(self, tmp_path, enabled_logging):
        """Each note lands in its own channel file with a timestamp prefix."""
        with Scribe(tmp_path / "log") as scribe:
            note("node", "10.0.0.1 (host1) S1")
            scribe.note("update", "10.0.0.1 (host1) S1 eth1 (1) note:x", "WARNING")

        node_log = (tmp_path / "log" / "node.log").read_text()
        update_log = (tmp_path / "log" / "update.log").read_text()
        assert re.fullmatch(r"\d{4}:\d{2}:\d{2}:\d{2}:\d{2}:\d{2} 10\.0\.0\.1 \(host1\) S1\n", node_log)
        assert update_log.endswith("note:x\n")
        assert "S1\n" not in update_log
        assert all((tmp_path / "log" / f"{channel}.log").exists() for channel in CHANNELS)

    def test_close_detaches(self, tmp_path, enabled_logging):
        """Notes after close() are not written."""
        scribe = Scribe(tmp_path).open()
        scribe.close()
        note("general", "late")
        assert (tmp_path / "general.log").read_text() == ""

    def test_unknown_channel(self):
        """Only the known channels are accepted."""
        with pytest.raises(ValueError):
            note("nonsense", "x")


class TestCaches:
    """Tests for the plain-file caches."""

    def test_write_lines_overwrites(self, tmp_path):
        """Lines are written one per row, replacing the old content."""
        path = tmp_path / "cache" / "dns.txt"
        write_lines(path, ["old"])

        assert write_lines(path, ["a.example.com. 60 IN A 10.0.0.1\n", "b"]) == 2
        assert path.read_text() == "a.example.com. 60 IN A 10.0.0.1\nb\n"

    def test_write_records(self, tmp_path):
        """The header comes first; unknown keys are dropped and missing ones left blank."""
        path = tmp_path / "db.csv"

        count = write_records(path, ["serial", "if", "note"], [{"serial": "S1", "if": "eth1", "extra": "x"}])

        with path.open(newline="") as handle:
            rows = list(csv.reader(handle))
        assert count == 1
        assert rows == [["serial", "if", "note"], ["S1", "eth1", ""]]
