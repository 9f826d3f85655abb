"""Timestamped log channels and the plain-file caches.

Every channel is a loguru file sink that only accepts records bound with
``channel=<name>``.  Library code writes to a channel through :func:`note`
whether or not a :class:`Scribe` is attached; without one, only
warnings and above reach the console.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Mapping

from loguru import logger

CHANNELS = ("node", "device", "unrecognized", "update", "general")

_CHANNEL_FORMAT = "{time:YYYY:MM:DD:HH:mm:ss} {message}"


def note(channel: str, message: str, level: str = "INFO") -> None:
    """Write ``message`` to a log channel."""
    if channel not in CHANNELS:
        raise ValueError(f"unknown log channel '{channel}'")
    logger.bind(channel=channel).log(level, message)


class Scribe:
    """Owns the channel sinks below ``log_dir``."""

    def __init__(self, log_dir: str | Path):
        self.log_dir = Path(log_dir)
        self._sink_ids: dict[str, int] = {}

    def path(self, channel: str) -> Path:
        return self.log_dir / f"{channel}.log"

    def open(self) -> "Scribe":
        self.log_dir.mkdir(parents=True, exist_ok=True)
        for channel in CHANNELS:
            if channel in self._sink_ids:
                continue
            self._sink_ids[channel] = logger.add(
                self.path(channel),
                format=_CHANNEL_FORMAT,
                level="DEBUG",
                filter=lambda record, name=channel: record["extra"].get("channel") == name,
                encoding="utf-8",
            )
        logger.debug(f"Log channels attached below {self.log_dir}")
        return self

    def close(self) -> None:
        for sink_id in self._sink_ids.values():
            logger.remove(sink_id)
        self._sink_ids.clear()

    def note(self, channel: str, message: str, level: str = "INFO") -> None:
        note(channel, message, level)

    def __enter__(self) -> "Scribe":
        return self.open()

    def __exit__(self, *exc: object) -> None:
        self.close()


def write_lines(path: str | Path, lines: Iterable[str]) -> int:
    """Overwrite ``path`` with one line per entry; returns the line count."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8") as handle:
        for line in lines:
            handle.write(line.rstrip("\n") + "\n")
            count += 1
    logger.debug(f"Wrote {count} lines to {path}")
    return count


def write_records(path: str | Path, fieldnames: list[str], rows: Iterable[Mapping[str, str]]) -> int:
    """Overwrite ``path`` with a CSV cache (header first); returns the row count."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames, extrasaction="ignore", restval="")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
            count += 1
    logger.debug(f"Wrote {count} records to {path}")
    return count
