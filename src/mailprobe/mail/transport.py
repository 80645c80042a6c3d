"""Async TCP transport with optional TLS for line-based mail protocols.

A Transport owns exactly one connection. It can start encrypted (implicit
TLS) or be upgraded in place with :meth:`Transport.upgrade_to_tls` after a
STARTTLS exchange. Any failure, timeout or cancellation aborts the
connection; the transport must then be discarded.
"""

import asyncio
import ssl
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType

import structlog

from mailprobe.exceptions import ConnectionClosedError, TransportError

logger = structlog.get_logger()

MAX_LINE_LENGTH = 64 * 1024  # bytes per reply line


def create_ssl_context(allow_invalid_certificates: bool = False) -> ssl.SSLContext:
    """Build a client TLS context.

    Args:
        allow_invalid_certificates: Disable hostname and chain verification.
            Only meant for test servers with self-signed certificates.
    """
    context = ssl.create_default_context()
    if allow_invalid_certificates:
        logger.warning("TLS certificate validation disabled")
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class Transport:
    """A single TCP connection to a mail server."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize an unconnected transport.

        Args:
            timeout: Seconds allowed for each connect, read, write or TLS
                upgrade. None means no per-operation limit.
        """
        self._timeout = timeout
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._host: str | None = None
        self._port: int | None = None
        self._allow_invalid_certificates = False
        self._secure = False

    @property
    def is_connected(self) -> bool:
        return self._writer is not None

    @property
    def is_secure(self) -> bool:
        return self._secure

    async def connect(
        self,
        host: str,
        port: int,
        *,
        use_ssl: bool = False,
        allow_invalid_certificates: bool = False,
    ) -> None:
        """Open the TCP connection, performing the TLS handshake first if use_ssl is set.

        Raises:
            TransportError: If DNS resolution, the TCP connect or the TLS handshake fails.
            RuntimeError: If the transport is already connected.
        """
        if self._writer is not None:
            raise RuntimeError("Transport is already connected")

        self._host = host
        self._port = port
        self._allow_invalid_certificates = allow_invalid_certificates
        ssl_context = create_ssl_context(allow_invalid_certificates) if use_ssl else None

        logger.debug("Connecting to mail server", host=host, port=port, ssl=use_ssl)
        async with self._guard("Connect"):
            self._reader, self._writer = await asyncio.open_connection(
                host,
                port,
                ssl=ssl_context,
                server_hostname=host if use_ssl else None,
                limit=MAX_LINE_LENGTH,
            )
        self._secure = use_ssl
        logger.info("Connected to mail server", host=host, port=port, ssl=use_ssl)

    async def upgrade_to_tls(self) -> None:
        """Wrap the open plaintext connection in TLS without reconnecting.

        Raises:
            TransportError: If the TLS handshake fails.
            RuntimeError: If not connected or already encrypted.
        """
        writer = self._require_writer()
        if self._secure:
            raise RuntimeError("Transport is already using TLS")

        ssl_context = create_ssl_context(self._allow_invalid_certificates)
        async with self._guard("TLS upgrade"):
            await writer.start_tls(ssl_context, server_hostname=self._host)
        self._secure = True
        logger.info("Connection upgraded to TLS", host=self._host, port=self._port)

    async def read_line(self) -> str:
        """Read one line, without its CRLF terminator."""
        reader = self._require_reader()
        async with self._guard("Read"):
            data = await reader.readuntil(b"\n")
        return data.decode("utf-8", errors="replace").rstrip("\r\n")

    async def write_raw(self, data: bytes) -> None:
        """Write bytes as-is; the caller supplies protocol line terminators."""
        writer = self._require_writer()
        async with self._guard("Write"):
            writer.write(data)
            await writer.drain()

    def abort(self) -> None:
        """Drop the connection immediately, discarding buffered data."""
        writer = self._writer
        self._reader = None
        self._writer = None
        self._secure = False
        if writer is not None:
            writer.transport.abort()
            logger.debug("Connection aborted", host=self._host, port=self._port)

    async def close(self) -> None:
        """Close the connection. Safe to call when not connected."""
        writer = self._writer
        if writer is None:
            return
        self._reader = None
        self._writer = None
        self._secure = False

        writer.close()
        try:
            async with asyncio.timeout(self._timeout):
                await writer.wait_closed()
        except asyncio.CancelledError:
            writer.transport.abort()
            raise
        except TimeoutError:
            writer.transport.abort()
        except OSError as e:
            logger.debug("Connection close failed (connection may already be closed)", error=str(e))
        logger.debug("Connection closed", host=self._host, port=self._port)

    def _require_writer(self) -> asyncio.StreamWriter:
        if self._writer is None:
            raise RuntimeError("Not connected. Call connect() first.")
        return self._writer

    def _require_reader(self) -> asyncio.StreamReader:
        if self._reader is None:
            raise RuntimeError("Not connected. Call connect() first.")
        return self._reader

    @asynccontextmanager
    async def _guard(self, action: str) -> AsyncIterator[None]:
        """Apply the per-operation timeout and translate I/O failures."""
        try:
            async with asyncio.timeout(self._timeout):
                yield
        except asyncio.CancelledError:
            self.abort()
            raise
        except TimeoutError as e:
            self.abort()
            raise TransportError(
                f"{action} timed out after {self._timeout}s", self._host, self._port
            ) from e
        except asyncio.IncompleteReadError as e:
            self.abort()
            raise ConnectionClosedError(
                "Connection closed by server", self._host, self._port
            ) from e
        except asyncio.LimitOverrunError as e:
            self.abort()
            raise TransportError(
                f"Server line exceeds {MAX_LINE_LENGTH} bytes", self._host, self._port
            ) from e
        except OSError as e:
            self.abort()
            raise TransportError(f"{action} failed: {e}", self._host, self._port) from e

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
