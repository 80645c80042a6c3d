"""IMAP session: greeting check, optional STARTTLS, LOGIN and SELECT."""

import logging
from types import TracebackType

from mailprobe.exceptions import ConfigError, StartTlsError
from mailprobe.mail.channel import CommandChannel, ImapGreetingRule, ImapTaggedRule
from mailprobe.mail.transport import Transport
from mailprobe.models import ConnectionConfig, ConnectionType, Response, SessionState

logger = logging.getLogger(__name__)

OK = "OK"
PREAUTH = "PREAUTH"
_GREETING_KEYWORDS = frozenset({OK, PREAUTH})

_AUTO_PORTS: dict[int, ConnectionType] = {
    993: ConnectionType.SSL,
    143: ConnectionType.TLS,
}


def resolve_imap_connection_type(configured: ConnectionType, port: int) -> ConnectionType:
    """Turn a configured IMAP connection type into a concrete one.

    Raises:
        ConfigError: If AUTO is configured with a port other than 993 or 143.
    """
    if configured != ConnectionType.AUTO:
        return configured
    try:
        return _AUTO_PORTS[port]
    except KeyError:
        raise ConfigError(
            f"Port {port} is not a valid imap port when using automatic configuration"
        ) from None


def quote(value: str) -> str:
    """Render a value as an IMAP quoted string."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class ImapSession:
    """One IMAP conversation, from connect to close.

    Every command gets a fresh tag (A0001, A0002, ...) and succeeds only
    when the tagged completion line reports OK.
    """

    def __init__(self, config: ConnectionConfig, transport: Transport | None = None) -> None:
        self.config = config
        self.connection_type = resolve_imap_connection_type(config.connection_type, config.port)
        self.state = SessionState.DISCONNECTED
        self.preauthenticated = False
        self._tag_counter = 0
        self._transport = transport or Transport(timeout=config.timeout)
        self._channel = CommandChannel(self._transport, ImapGreetingRule())

    def _next_tag(self) -> str:
        self._tag_counter += 1
        return f"A{self._tag_counter:04d}"

    async def _command(self, text: str, *, sensitive: bool = False) -> Response:
        tag = self._next_tag()
        return await self._channel.execute(
            f"{tag} {text}\r\n", ImapTaggedRule(tag), sensitive=sensitive
        )

    async def connect(self) -> bool:
        """Open the connection, check the greeting and upgrade with STARTTLS in TLS mode.

        Returns:
            True if the server greeted with OK (or PREAUTH), False otherwise.

        Raises:
            StartTlsError: If TLS mode is configured and the server refuses STARTTLS
                or greets with PREAUTH, since an authenticated session cannot be upgraded.
            TransportError: If the connection or TLS handshake fails.
        """
        if self.state != SessionState.DISCONNECTED or self._transport.is_connected:
            raise RuntimeError("Session is already connected")

        logger.debug(
            "Connecting to IMAP server (host=%s, port=%s, type=%s)",
            self.config.host,
            self.config.port,
            self.connection_type.value,
        )
        await self._transport.connect(
            self.config.host,
            self.config.port,
            use_ssl=self.connection_type == ConnectionType.SSL,
            allow_invalid_certificates=self.config.allow_invalid_certificates,
        )
        greeting = await self._channel.read_response()
        accepted = greeting.code_or_keyword in _GREETING_KEYWORDS
        if not greeting.full_text.startswith("* ") or not accepted:
            logger.info(
                "IMAP greeting rejected (host=%s, greeting=%r)", self.config.host, greeting.full_text
            )
            return False

        if greeting.code_or_keyword == PREAUTH:
            # STARTTLS and LOGIN are not allowed once the server has authenticated us
            if self.connection_type == ConnectionType.TLS:
                raise StartTlsError("IMAP", greeting.full_text)
            self.preauthenticated = True
            self.state = SessionState.AUTHENTICATED
            return True

        self.state = SessionState.CONNECTED
        if self.connection_type == ConnectionType.TLS:
            await self.upgrade_to_tls()
        return True

    async def upgrade_to_tls(self) -> None:
        """Issue STARTTLS and switch the open connection to TLS.

        Raises:
            StartTlsError: If the tagged reply is not OK.
            RuntimeError: If the session is not freshly connected or already encrypted.
        """
        if self.state != SessionState.CONNECTED:
            raise RuntimeError("STARTTLS is only possible on a connected, unauthenticated session")
        if self._transport.is_secure:
            raise RuntimeError("Connection is already encrypted")

        reply = await self._command("STARTTLS")
        if reply.code_or_keyword != OK:
            raise StartTlsError("IMAP", reply.full_text)

        await self._transport.upgrade_to_tls()
        self.state = SessionState.SECURED

    async def authenticate(self, username: str, password: str) -> bool:
        """Send LOGIN with the given credentials.

        Returns:
            True if the tagged reply is OK, or without sending anything if
            the server greeted with PREAUTH.
        """
        if self.preauthenticated:
            logger.debug("IMAP session is pre-authenticated, skipping LOGIN")
            return True
        if self.state not in (SessionState.CONNECTED, SessionState.SECURED):
            raise RuntimeError("Not connected. Call connect() first.")

        reply = await self._command(f"LOGIN {quote(username)} {quote(password)}", sensitive=True)
        if reply.code_or_keyword != OK:
            logger.info(
                "IMAP login rejected (host=%s, status=%s)", self.config.host, reply.code_or_keyword
            )
            return False

        self.state = SessionState.AUTHENTICATED
        return True

    async def select_folder(self, name: str) -> bool:
        """Send SELECT for a mailbox.

        Returns:
            True if the tagged reply is OK.
        """
        if self.state not in (SessionState.AUTHENTICATED, SessionState.FOLDER_SELECTED):
            raise RuntimeError("Not authenticated. Call authenticate() first.")

        reply = await self._command(f"SELECT {quote(name)}")
        if reply.code_or_keyword != OK:
            logger.info("IMAP select rejected (folder=%s, status=%s)", name, reply.code_or_keyword)
            return False

        self.state = SessionState.FOLDER_SELECTED
        return True

    async def close(self) -> None:
        """Release the connection."""
        await self._transport.close()
        self.state = SessionState.DISCONNECTED

    async def __aenter__(self) -> "ImapSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
