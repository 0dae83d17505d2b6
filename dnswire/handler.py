"""
Relay request handler.
Decodes a client datagram, lets hooks inspect or rewrite the message,
forwards it upstream and encodes the reply for the client.
"""

import logging
from dataclasses import replace
from typing import Callable, Optional

from .config import Config
from .enums import RCode
from .errors import MessageError
from .protocol import Message, decode
from .records import A
from .resolver import forward

logger = logging.getLogger(__name__)

Hook = Callable[[Message], None]


def make_response(query: Message, rcode: RCode = RCode.NOERROR) -> Message:
    """Create an empty response to `query` carrying its id and questions."""
    header = replace(query.header, qr=True, ra=True, rcode=rcode)
    return Message(header=header, questions=list(query.questions))


def sinkhole_response(address: str) -> Hook:
    """Build a response hook that points every A answer at `address`."""
    target = A(address)

    def hook(message: Message):
        for i, rr in enumerate(message.answers):
            if isinstance(rr.data, A):
                logger.debug(f"Sinkholing {rr.name} {rr.data} -> {target}")
                message.answers[i] = replace(rr, data=target)

    return hook


class RelayHandler:
    def __init__(
        self,
        config: Config,
        on_request: Optional[Hook] = None,
        on_response: Optional[Hook] = None,
    ):
        self.config = config
        self.request_hooks: list[Hook] = []
        self.response_hooks: list[Hook] = []
        if on_request:
            self.request_hooks.append(on_request)
        if config.server.sinkhole:
            self.response_hooks.append(sinkhole_response(config.server.sinkhole))
        if on_response:
            self.response_hooks.append(on_response)

    def handle(self, data: bytes) -> bytes:
        """Process a raw client datagram and return the raw reply (b"" to drop it)."""
        try:
            query = decode(data)
        except MessageError as e:
            logger.warning(f"Failed to parse DNS query: {e}")
            return b""

        if self.config.server.log_messages:
            logger.info(f"Message request: {query}")

        for hook in self.request_hooks:
            hook(query)

        server = self.config.server
        reply = forward(
            query,
            server.upstream,
            port=server.upstream_port,
            timeout=server.upstream_timeout,
        )

        if reply is None:
            reply = make_response(query, RCode.SERVFAIL)
        else:
            for hook in self.response_hooks:
                hook(reply)

        if self.config.server.log_messages:
            logger.info(f"Message response: {reply}")

        try:
            return reply.to_wire()
        except MessageError as e:
            logger.error(f"Could not serialize message: {e}")
            return b""
