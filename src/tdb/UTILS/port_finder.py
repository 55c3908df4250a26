"""
Utilities for picking host ports for database containers.
"""
import socket
from typing import Optional


def get_free_port() -> int:
    """
    Finds a free port on localhost.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('', 0))
        return s.getsockname()[1]


def is_port_free(port: int) -> bool:
    """
    Checks if a port is free on localhost.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind(('', port))
            return True
        except OSError:
            return False


def resolve_host_port(port: Optional[int]) -> int:
    """
    Returns the configured port, or a free one when none is configured.

    :param port: Configured host port; None or 0 means any free port.
    """
    if not port:
        return get_free_port()
    return port
