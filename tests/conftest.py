"""Shared fixtures: an in-memory transport that replays scripted server replies."""

import asyncio
from collections import deque
from collections.abc import Callable

import pytest

from mailprobe.exceptions import ConnectionClosedError
from mailprobe.mail.transport import Transport


class ScriptedTransport(Transport):
    """Transport double that answers each written command with the next scripted reply.

    Every call to write_raw() queues the next entry of ``replies`` for reading.
    """

    def __init__(
        self,
        greeting: list[str] | None = None,
        replies: list[list[str]] | None = None,
        *,
        connect_error: BaseException | None = None,
        hang_on_connect: bool = False,
    ) -> None:
        super().__init__()
        self.greeting = greeting or []
        self.replies = deque(replies or [])
        self.connect_error = connect_error
        self.hang_on_connect = hang_on_connect
        self.written: list[str] = []
        self.connect_args: dict[str, object] | None = None
        self.upgrades = 0
        self.closed = False
        self._lines: deque[str] = deque()
        self._connected = False
        self._tls = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_secure(self) -> bool:
        return self._tls

    async def connect(
        self,
        host: str,
        port: int,
        *,
        use_ssl: bool = False,
        allow_invalid_certificates: bool = False,
    ) -> None:
        self.connect_args = {
            "host": host,
            "port": port,
            "use_ssl": use_ssl,
            "allow_invalid_certificates": allow_invalid_certificates,
        }
        if self.hang_on_connect:
            await asyncio.Event().wait()
        if self.connect_error is not None:
            raise self.connect_error
        self._connected = True
        self._tls = use_ssl
        self._lines.extend(self.greeting)

    async def upgrade_to_tls(self) -> None:
        self.upgrades += 1
        self._tls = True

    async def read_line(self) -> str:
        if not self._lines:
            raise ConnectionClosedError("Connection closed by server")
        return self._lines.popleft()

    async def write_raw(self, data: bytes) -> None:
        self.written.append(data.decode("utf-8"))
        if self.replies:
            self._lines.extend(self.replies.popleft())

    async def close(self) -> None:
        self._connected = False
        self.closed = True


@pytest.fixture
def make_transport() -> Callable[..., ScriptedTransport]:
    """Factory for scripted transports."""
    return ScriptedTransport
