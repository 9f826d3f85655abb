"""Shared helper functions for node discovery."""

from __future__ import annotations

import ipaddress
import subprocess

from loguru import logger


def _run_cmd(cmd: list[str], timeout: int = 60) -> str:
    """Run a subprocess command and return stdout."""
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        return result.stdout
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.debug(f"Command {cmd[0]} failed: {e}")
        return ""


def _validate_ip(ip: str) -> bool:
    """Validate IP address string."""
    try:
        ipaddress.ip_address(ip)
        return True
    except ValueError:
        return False


def _is_clean_serial(value: str | None) -> bool:
    """A usable serial is non-blank and pure ASCII."""
    return bool(value and value.strip() and value.isascii())
