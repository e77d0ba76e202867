"""
OSC Transport

Thin adapters over python-osc: a UDP sender and a threaded UDP listener.
Encoding, framing and delivery are python-osc's business.
"""

import logging
import threading
from typing import Any, Callable, Optional, Sequence, Tuple

from pythonosc import udp_client
from pythonosc.dispatcher import Dispatcher
from pythonosc.osc_server import ThreadingOSCUDPServer

logger = logging.getLogger(__name__)

MessageHandler = Callable[..., None]


class OscSender:
    """
    UDP sender for a single destination.

    python-osc infers the wire type from the Python value:
    int -> i (32-bit), float -> f (32-bit), str -> s, bool -> T/F.
    Send errors propagate to the caller.
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self._client = udp_client.SimpleUDPClient(host, port)

    def send(self, address: str, args: Sequence[Any]) -> None:
        self._client.send_message(address, list(args))

    def __repr__(self) -> str:
        return f"OscSender({self.host}:{self.port})"


class OscListener:
    """
    Threaded OSC UDP server with a catch-all handler.

    Each datagram is dispatched on its own thread, so the handler must be
    thread safe. The socket is bound in __init__; an OSError there means
    the address is unavailable.

    Example:
        listener = OscListener("127.0.0.1", 9000, recorder.handle_message)
        listener.start()
        ...
        listener.stop()
    """

    def __init__(self, host: str, port: int, handler: MessageHandler):
        self._dispatcher = Dispatcher()
        self._dispatcher.set_default_handler(handler)
        self._server = ThreadingOSCUDPServer((host, port), self._dispatcher)
        self._thread: Optional[threading.Thread] = None

    @property
    def server_address(self) -> Tuple[str, int]:
        """Bound (host, port); useful when port 0 was requested."""
        host, port = self._server.server_address[:2]
        return host, port

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="OscListener",
            daemon=True,
        )
        self._thread.start()
        host, port = self.server_address
        logger.info(f"Listening for OSC on {host}:{port} ...")

    def stop(self) -> None:
        if self._thread is not None:
            self._server.shutdown()
            self._thread.join(timeout=2.0)
            self._thread = None
        self._server.server_close()
        logger.info("OSC listener stopped")
