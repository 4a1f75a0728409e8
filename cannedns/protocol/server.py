"""
UDP and TCP listeners that answer queries from a loaded ``EntryList``.

Both listeners share one port number. A UDP query is one datagram and gets at
most one datagram back. A TCP query is a 2-byte big-endian length followed by
the message; the answer is framed the same way and the connection is closed
after one exchange. Queries that cannot be decoded or match no entry are
logged and dropped.

Each TCP connection runs in its own task on the event loop, so a peer that
trickles bytes does not hold up other clients. ``ServerConfig.tcp_timeout``
bounds how long a connection may take to deliver its query.
"""

import asyncio
import logging
import struct
from typing import Any, Awaitable, Optional, Set, Tuple, TypeVar

from ..config import ServerConfig
from ..entry import EntryList, Transport
from ..exceptions import ProtocolError
from ..utils.logging_utils import (
    log_answer_event,
    log_connection_event,
    log_debug_operation,
    log_dropped_query,
    log_query_event,
)
from . import codec
from .responder import get_answer

logger = logging.getLogger(__name__)

T = TypeVar("T")

LENGTH_PREFIX = struct.Struct("!H")
MAX_TCP_MESSAGE = 0xFFFF


class _UdpProtocol(asyncio.DatagramProtocol):
    def __init__(self, server: "CannedServer") -> None:
        self._server = server
        self.transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: Tuple[Any, ...]) -> None:
        answer = self._server.handle_datagram(data, addr)
        if answer is None or self.transport is None:
            return
        try:
            self.transport.sendto(answer, addr)
        except OSError as e:
            logger.warning(f"sendto(): {e}")

    def error_received(self, exc: Exception) -> None:
        logger.warning(f"recvfrom(): {exc}")


class CannedServer:
    """Answers DNS queries with canned replies.

    Args:
        entries: Parsed data file, shared read-only by all requests
        config: Listening address, port and limits
    """

    def __init__(
        self, entries: EntryList, config: Optional[ServerConfig] = None
    ) -> None:
        self.entries = entries
        self.config = config if config is not None else ServerConfig()
        self._count = 0
        self._port: Optional[int] = None
        self._tcp_server: Optional[asyncio.AbstractServer] = None
        self._udp_transport: Optional[asyncio.DatagramTransport] = None
        self._clients: Set[asyncio.StreamWriter] = set()

    @property
    def port(self) -> Optional[int]:
        """Port both listeners are bound to, once started."""
        return self._port

    @property
    def query_count(self) -> int:
        """Number of queries decoded so far."""
        return self._count

    @property
    def is_serving(self) -> bool:
        return self._tcp_server is not None and self._tcp_server.is_serving()

    def handle_query(self, wire: bytes, transport: Transport) -> Optional[bytes]:
        """Run one query through decode, match, build and encode.

        Returns:
            The encoded answer, or None when nothing should be sent
        """
        try:
            query = codec.decode(wire)
        except ProtocolError as e:
            log_dropped_query(logger, transport.value, str(e))
            return None

        self._count += 1
        log_query_event(
            logger,
            self._count,
            query.id,
            transport.value,
            len(wire),
            codec.question_text(query),
        )

        answer = get_answer(self.entries, query, transport)
        if answer is None:
            log_dropped_query(logger, transport.value, "no matching entry")
            return None

        try:
            wire_answer = codec.encode(answer)
        except ProtocolError as e:
            log_dropped_query(logger, transport.value, str(e))
            return None
        log_answer_event(logger, len(wire_answer))
        return wire_answer

    def handle_datagram(self, data: bytes, addr: Tuple[Any, ...]) -> Optional[bytes]:
        if len(data) > self.config.inbuf_size:
            log_dropped_query(
                logger,
                Transport.UDP.value,
                f"datagram of {len(data)} bytes from {addr[0]} exceeds buffer of "
                f"{self.config.inbuf_size} bytes",
            )
            return None
        return self.handle_query(data, Transport.UDP)

    async def _read(self, operation: Awaitable[T]) -> T:
        if self.config.tcp_timeout is None:
            return await operation
        return await asyncio.wait_for(operation, timeout=self.config.tcp_timeout)

    async def handle_tcp(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Serve one length-framed query on an accepted connection, then close it."""
        peer = writer.get_extra_info("peername")
        self._clients.add(writer)
        log_debug_operation(logger, "TCP connection", peer)
        try:
            (length,) = LENGTH_PREFIX.unpack(await self._read(reader.readexactly(2)))
            if length >= self.config.inbuf_size:
                log_dropped_query(
                    logger,
                    Transport.TCP.value,
                    f"query {length} bytes too large, buffer "
                    f"{self.config.inbuf_size} bytes.",
                )
                return
            payload = await self._read(reader.readexactly(length))

            answer = self.handle_query(payload, Transport.TCP)
            if answer is None:
                return
            if len(answer) > MAX_TCP_MESSAGE:
                log_dropped_query(
                    logger,
                    Transport.TCP.value,
                    f"answer of {len(answer)} bytes does not fit a TCP length prefix",
                )
                return
            writer.write(LENGTH_PREFIX.pack(len(answer)) + answer)
            await writer.drain()
        except asyncio.IncompleteReadError as e:
            logger.warning(
                f"read(): connection from {peer} closed after "
                f"{len(e.partial)} of {e.expected} bytes"
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"read(): no complete query from {peer} within "
                f"{self.config.tcp_timeout}s"
            )
        except OSError as e:
            logger.warning(f"TCP connection from {peer} failed: {e}")
        finally:
            self._clients.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def start(self) -> None:
        """Bind the TCP and UDP listeners.

        With port 0 the TCP listener picks a free port and the UDP listener
        binds the same number.

        Raises:
            OSError: a listener cannot be bound
        """
        if self._tcp_server is not None:
            raise RuntimeError("Server already started")
        self.config.validate()
        loop = asyncio.get_running_loop()
        self._tcp_server = await asyncio.start_server(
            self.handle_tcp,
            self.config.host,
            self.config.port,
            backlog=self.config.backlog,
            reuse_address=True,
        )
        port = self._tcp_server.sockets[0].getsockname()[1]
        try:
            self._udp_transport, _ = await loop.create_datagram_endpoint(
                lambda: _UdpProtocol(self), local_addr=(self.config.host, port)
            )
        except OSError:
            self._tcp_server.close()
            await self._tcp_server.wait_closed()
            self._tcp_server = None
            raise
        self._port = port
        log_connection_event(logger, "Listening", self.config.host, port)

    async def serve_forever(self) -> None:
        """Serve until cancelled, then release both listeners."""
        if self._tcp_server is None:
            await self.start()
        assert self._tcp_server is not None
        try:
            await self._tcp_server.serve_forever()
        finally:
            await self.stop()

    async def stop(self) -> None:
        if self._udp_transport is not None:
            self._udp_transport.close()
            self._udp_transport = None
        if self._tcp_server is not None:
            self._tcp_server.close()
            # wait_closed() also waits for accepted connections (3.12+)
            for writer in list(self._clients):
                writer.close()
            await self._tcp_server.wait_closed()
            self._tcp_server = None
            log_connection_event(logger, "Stopped", self.config.host, self._port or 0)

    async def __aenter__(self) -> "CannedServer":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()
