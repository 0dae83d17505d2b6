"""
UDP front end for the relay.

Datagrams arrive on the event loop and are handed to RelayHandler.handle in
the default thread pool, so a slow upstream never blocks other clients.
"""

import asyncio
import logging
import signal
from typing import Optional

from .config import Config, load_config
from .handler import Hook, RelayHandler

logger = logging.getLogger(__name__)

RELOAD_INTERVAL = 5


class RelayProtocol(asyncio.DatagramProtocol):
    def __init__(self, handler: RelayHandler):
        self.handler = handler
        self.transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport: asyncio.DatagramTransport):
        self.transport = transport

    def datagram_received(self, data: bytes, addr: tuple):
        logger.debug(f"Received {len(data)} bytes from {addr}")
        pending = asyncio.get_running_loop().run_in_executor(None, self.handler.handle, data)
        pending.add_done_callback(lambda f: self._send_reply(f, addr))

    def _send_reply(self, future: asyncio.Future, addr: tuple):
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(f"Error handling datagram from {addr}: {exc}", exc_info=exc)
            return
        reply = future.result()
        if not reply:
            return
        if self.transport is None or self.transport.is_closing():
            logger.warning(f"Transport closed, dropping reply to {addr}")
            return
        logger.debug(f"Sending to: {addr}, length: {len(reply)}")
        self.transport.sendto(reply, addr)

    def error_received(self, exc: Exception):
        logger.error(f"UDP socket error: {exc}")


class RelayServer:
    def __init__(
        self,
        config: Config,
        on_request: Optional[Hook] = None,
        on_response: Optional[Hook] = None,
    ):
        self.config = config
        self.on_request = on_request
        self.on_response = on_response
        self.protocol: Optional[RelayProtocol] = None

    def make_handler(self) -> RelayHandler:
        return RelayHandler(self.config, self.on_request, self.on_response)

    def reload_config(self):
        """Re-read the config file; the listen address is kept."""
        host, port = self.config.server.host, self.config.server.port
        try:
            fresh = load_config(str(self.config._path))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to reload config: {e}")
            return
        if (fresh.server.host, fresh.server.port) != (host, port):
            logger.warning("Listen address changes take effect after a restart")
            fresh.server.host, fresh.server.port = host, port
        self.config = fresh
        if self.protocol is not None:
            self.protocol.handler = self.make_handler()
        logger.info("Configuration reloaded")

    async def start(self):
        """Bind the socket and serve until cancelled."""
        server = self.config.server
        loop = asyncio.get_running_loop()
        transport, self.protocol = await loop.create_datagram_endpoint(
            lambda: RelayProtocol(self.make_handler()),
            local_addr=(server.host, server.port),
        )

        logger.info(f"dnswire relay listening on {server.host}:{server.port}/udp")
        logger.info(f"Forwarding to {', '.join(server.upstream)} on port {server.upstream_port}")
        if server.sinkhole:
            logger.info(f"A answers rewritten to {server.sinkhole}")

        try:
            while True:
                await asyncio.sleep(RELOAD_INTERVAL)
                if self.config.is_stale():
                    logger.info("Config file changed, reloading")
                    self.reload_config()
        finally:
            transport.close()
            logger.info("dnswire relay stopped")


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


async def run_server(config: Config):
    """Run the relay until SIGINT or SIGTERM."""
    loop = asyncio.get_running_loop()
    stopping = asyncio.Event()

    def request_stop():
        logger.info("Received shutdown signal")
        stopping.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop)
        except NotImplementedError:
            # no signal handlers on Windows event loops; Ctrl+C still raises KeyboardInterrupt
            pass

    serving = asyncio.create_task(RelayServer(config).start())
    stop_wait = asyncio.create_task(stopping.wait())
    await asyncio.wait({serving, stop_wait}, return_when=asyncio.FIRST_COMPLETED)

    stop_wait.cancel()
    serving.cancel()
    try:
        await serving
    except asyncio.CancelledError:
        pass
