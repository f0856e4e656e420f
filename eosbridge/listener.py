"""
UDP listener for EOS console strings.

Binds one asyncio datagram endpoint and hands each datagram to the bridge as
a RawEvent. Only the first `bufsize` bytes of a datagram are kept (EOS strings
are short; longer payloads are truncated, not reassembled).

The socket is bound once, with no rebind loop: if the port cannot be opened
at startup, open() raises and the process exits.
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

log = logging.getLogger("bridge.udp")

Addr = Tuple[str, int]


@dataclass(frozen=True)
class RawEvent:
    data: bytes
    addr: Optional[Addr]
    received_at: float


class _EosProtocol(asyncio.DatagramProtocol):
    def __init__(self, outer: "UdpListener"):
        self.outer = outer

    def connection_made(self, transport):
        self.outer._transport = transport
        log.info("Listening on UDP %s:%s", self.outer.host, self.outer.port)

    def datagram_received(self, data, addr):
        self.outer.feed(data, addr)

    def error_received(self, exc):
        log.warning("Failed to read input buffer: %s", exc)

    def connection_lost(self, exc):
        log.info("UDP socket closed%s", f": {exc}" if exc else "")


class UdpListener:
    def __init__(self, host: str, port: int, *, bufsize: int = 24, max_queue: int = 256):
        self.host = host
        self.port = port
        self.bufsize = bufsize
        self._queue: asyncio.Queue[RawEvent] = asyncio.Queue(maxsize=max_queue)
        self._transport: Optional[asyncio.DatagramTransport] = None

    async def open(self) -> None:
        """Bind the socket. OSError propagates (port in use, bad address...)."""
        loop = asyncio.get_running_loop()
        await loop.create_datagram_endpoint(
            lambda: _EosProtocol(self),
            local_addr=(self.host, self.port),
        )

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
            self._transport = None

    def feed(self, data: bytes, addr: Optional[Addr]) -> None:
        """Queue one datagram (truncated to bufsize) with its arrival time."""
        evt = RawEvent(bytes(data[: self.bufsize]), addr, time.time())
        try:
            self._queue.put_nowait(evt)
        except asyncio.QueueFull:
            log.warning("UDP queue full, dropping %r from %s", evt.data, addr)

    async def get(self) -> RawEvent:
        """Next datagram in arrival order; waits until one is queued."""
        return await self._queue.get()
