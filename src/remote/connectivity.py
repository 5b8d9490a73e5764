# src/remote/connectivity.py — v1
"""Synchronous network reachability checks.

A check is a zero-argument callable returning True when the network is
reachable. It runs before any request I/O is started; the client calls
blocking checks from a worker thread so the event loop keeps running.
"""

from __future__ import annotations

import logging
import socket
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from ofrenda.config.settings import Settings

logger = logging.getLogger(__name__)

ConnectivityCheck = Callable[[], bool]


def always_online() -> bool:
    """Check used when no reachability check is configured."""
    return True


def socket_check(host: str, port: int = 443, timeout_s: float = 1.0) -> ConnectivityCheck:
    """Build a check that opens (and closes) a TCP connection to ``host:port``."""

    def _check() -> bool:
        try:
            with socket.create_connection((host, port), timeout=timeout_s):
                return True
        except OSError as exc:
            logger.debug("Reachability check to %s:%d failed: %s", host, port, exc)
            return False

    return _check


def check_from_settings(settings: Settings) -> ConnectivityCheck:
    if not settings.connectivity_check_host:
        return always_online
    return socket_check(
        settings.connectivity_check_host,
        settings.connectivity_check_port,
        settings.connectivity_check_timeout_s,
    )
