"""Command/response exchange shared by the SMTP and IMAP sessions."""

import logging
from abc import ABC, abstractmethod

from mailprobe.exceptions import TransportError
from mailprobe.mail.transport import Transport
from mailprobe.models import Response

logger = logging.getLogger(__name__)

MAX_REPLY_LINES = 1000


class ReplyRule(ABC):
    """Decides when a multi-line server reply is complete."""

    @abstractmethod
    def is_final(self, line: str) -> bool:
        """Return True if this line ends the reply."""
        ...

    @abstractmethod
    def code_of(self, line: str) -> str:
        """Extract the reply code or status keyword from the final line."""
        ...


class SmtpReplyRule(ReplyRule):
    """SMTP: ``250-`` continues a reply, ``250 `` (or a bare code) ends it."""

    def is_final(self, line: str) -> bool:
        return len(line) < 4 or line[3] != "-"

    def code_of(self, line: str) -> str:
        return line[:3]


class ImapTaggedRule(ReplyRule):
    """IMAP: untagged ``*`` lines continue until the line carrying the command's tag."""

    def __init__(self, tag: str) -> None:
        self.tag = tag

    def is_final(self, line: str) -> bool:
        return line.startswith(f"{self.tag} ")

    def code_of(self, line: str) -> str:
        parts = line.split(" ", 2)
        return parts[1].upper() if len(parts) > 1 else ""


class ImapGreetingRule(ReplyRule):
    """IMAP: the server greeting is a single untagged line."""

    def is_final(self, line: str) -> bool:
        return True

    def code_of(self, line: str) -> str:
        parts = line.split(" ", 2)
        return parts[1].upper() if len(parts) > 1 else ""


class CommandChannel:
    """Send a command line and collect the complete reply as one Response."""

    def __init__(
        self,
        transport: Transport,
        rule: ReplyRule,
        max_lines: int = MAX_REPLY_LINES,
    ) -> None:
        """Initialize the channel.

        Args:
            transport: Connected (or soon to be connected) transport.
            rule: Default completion rule, overridable per call.
            max_lines: Upper bound on lines accepted for one reply.
        """
        self._transport = transport
        self._rule = rule
        self._max_lines = max_lines

    async def read_response(self, rule: ReplyRule | None = None) -> Response:
        """Read lines until the completion rule accepts one.

        Raises:
            TransportError: If reading fails or the reply never completes.
        """
        rule = rule or self._rule
        lines: list[str] = []
        while True:
            line = await self._transport.read_line()
            lines.append(line)
            logger.debug("S: %s", line)
            if rule.is_final(line):
                break
            if len(lines) >= self._max_lines:
                raise TransportError(f"Server reply exceeded {self._max_lines} lines")

        return Response(
            code_or_keyword=rule.code_of(lines[-1]),
            full_text="\n".join(lines),
            lines=lines,
        )

    async def execute(
        self,
        command: str,
        rule: ReplyRule | None = None,
        *,
        sensitive: bool = False,
    ) -> Response:
        """Write a command and return its complete reply.

        Args:
            command: Command text including its CRLF terminator.
            rule: Completion rule for this reply (defaults to the channel's rule).
            sensitive: Keep the command text out of the logs.

        Raises:
            RuntimeError: If the transport is not connected.
            TransportError: If the exchange fails at the network level.
        """
        if not self._transport.is_connected:
            raise RuntimeError("Not connected. Call connect() first.")

        logger.debug("C: %s", "<redacted>" if sensitive else command.rstrip("\r\n"))
        await self._transport.write_raw(command.encode("utf-8"))
        return await self.read_response(rule)
