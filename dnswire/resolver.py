"""
Upstream forwarding — sends a message to upstream servers over UDP.
Tries each server in order, falls back on timeout/error.
"""

import socket
import logging
from typing import Optional

from .errors import MessageError
from .protocol import Message, decode

logger = logging.getLogger(__name__)

RECV_SIZE = 4096


def forward(
    message: Message,
    upstream_servers: list[str],
    port: int = 53,
    timeout: float = 3.0,
) -> Optional[Message]:
    """
    Forward a message to upstream servers.
    Returns the decoded reply, or None if all upstreams fail.
    """
    raw_query = message.to_wire()

    for server in upstream_servers:
        try:
            reply = _query_udp(raw_query, server, port, timeout)
        except MessageError as e:
            logger.error(f"Error parsing response from upstream {server}: {e}")
            continue
        except OSError as e:
            logger.debug(f"Upstream {server} failed: {e}")
            continue
        logger.info(f"Got back: {reply}")
        return reply

    logger.warning(f"All upstream servers failed for {message}")
    return None


def _query_udp(raw_query: bytes, server: str, port: int, timeout: float) -> Message:
    """Send one query from a fresh UDP socket and decode the reply."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.settimeout(timeout)
        sock.connect((server, port))
        logger.debug(f"Sending {len(raw_query)} bytes to {server}:{port}")
        sock.send(raw_query)
        data = sock.recv(RECV_SIZE)
    return decode(data)
