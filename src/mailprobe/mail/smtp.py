"""SMTP session: connection-type resolution, EHLO, STARTTLS and AUTH LOGIN.

Only the protocol surface needed to prove a server is alive and accepts a
login is implemented. Replies are matched by substring containment of the
reply codes below, not by a full reply-code parse.
"""

import base64
import logging
from types import TracebackType

from mailprobe.exceptions import ConfigError, StartTlsError
from mailprobe.mail.channel import CommandChannel, SmtpReplyRule
from mailprobe.mail.transport import Transport
from mailprobe.models import ConnectionConfig, ConnectionType, SessionState

logger = logging.getLogger(__name__)

ACTION_OK = "250"
SERVICE_READY = "220"
AUTHENTICATION_SUCCESS = "235"

STARTTLS = "STARTTLS\r\n"
AUTH_LOGIN = "AUTH LOGIN\r\n"

# Well-known SMTP ports and the security mode each implies
_AUTO_PORTS: dict[int, ConnectionType] = {
    465: ConnectionType.SSL,
    587: ConnectionType.TLS,
    25: ConnectionType.PLAIN,
}


def resolve_connection_type(configured: ConnectionType, port: int) -> ConnectionType:
    """Turn a configured connection type into a concrete one.

    An explicit type is returned unchanged. AUTO is resolved from the port
    alone: 465 is SSL, 587 is TLS (STARTTLS), 25 is PLAIN.

    Raises:
        ConfigError: If AUTO is configured with any other port.
    """
    if configured != ConnectionType.AUTO:
        return configured
    try:
        return _AUTO_PORTS[port]
    except KeyError:
        raise ConfigError(
            f"Port {port} is not a valid smtp port when using automatic configuration"
        ) from None


def ehlo(host: str) -> str:
    return f"EHLO {host}\r\n"


def to_base64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class SmtpSession:
    """One SMTP conversation, from connect to close.

    The session owns its transport; use it as an async context manager so
    the connection is released on every exit path.
    """

    def __init__(self, config: ConnectionConfig, transport: Transport | None = None) -> None:
        """Initialize the session and resolve its connection type.

        Args:
            config: Server address and security settings.
            transport: Transport to use (a new one is created if omitted).

        Raises:
            ConfigError: If the connection type cannot be resolved for the port.
        """
        self.config = config
        self.connection_type = resolve_connection_type(config.connection_type, config.port)
        self.use_ssl = self.connection_type == ConnectionType.SSL
        self.state = SessionState.DISCONNECTED
        self._transport = transport or Transport(timeout=config.timeout)
        self._channel = CommandChannel(self._transport, SmtpReplyRule())

    @property
    def should_upgrade(self) -> bool:
        """True if the plaintext connection must be upgraded with STARTTLS before login."""
        return not self.use_ssl and self.connection_type != ConnectionType.PLAIN

    async def connect(self) -> bool:
        """Open the connection and send EHLO.

        Returns:
            True if the server accepted EHLO, False otherwise.

        Raises:
            TransportError: If the connection cannot be established.
        """
        if self.state != SessionState.DISCONNECTED or self._transport.is_connected:
            raise RuntimeError("Session is already connected")

        logger.debug(
            "Connecting to SMTP server (host=%s, port=%s, type=%s)",
            self.config.host,
            self.config.port,
            self.connection_type.value,
        )
        await self._transport.connect(
            self.config.host,
            self.config.port,
            use_ssl=self.use_ssl,
            allow_invalid_certificates=self.config.allow_invalid_certificates,
        )
        greeting = await self._channel.read_response()
        logger.debug("SMTP greeting received (code=%s)", greeting.code_or_keyword)

        reply = await self._channel.execute(ehlo(self.config.host))
        if not reply.contains(ACTION_OK):
            logger.info(
                "SMTP EHLO rejected (host=%s, code=%s)", self.config.host, reply.code_or_keyword
            )
            return False

        self.state = SessionState.CONNECTED
        return True

    async def upgrade_to_tls(self) -> None:
        """Issue STARTTLS and switch the open connection to TLS.

        Raises:
            StartTlsError: If the server does not answer STARTTLS with service ready.
            TransportError: If the TLS handshake fails.
            RuntimeError: If the session is not freshly connected or already encrypted.
        """
        if self.state != SessionState.CONNECTED:
            raise RuntimeError("STARTTLS is only possible on a connected, unauthenticated session")
        if self.use_ssl:
            raise RuntimeError("Connection is already encrypted")

        reply = await self._channel.execute(STARTTLS)
        if not reply.contains(SERVICE_READY):
            raise StartTlsError("SMTP", reply.full_text)

        await self._transport.upgrade_to_tls()
        self.use_ssl = True
        self.state = SessionState.SECURED

    async def authenticate(self, username: str, password: str) -> bool:
        """Log in with AUTH LOGIN, upgrading the connection first when required.

        Returns:
            True if the server reported authentication success.

        Raises:
            StartTlsError: If a required STARTTLS upgrade is refused.
            TransportError: If the exchange fails at the network level.
        """
        if self.state not in (SessionState.CONNECTED, SessionState.SECURED):
            raise RuntimeError("Not connected. Call connect() first.")

        if self.should_upgrade:
            await self.upgrade_to_tls()

        # Servers forget the capability list after STARTTLS
        await self._channel.execute(ehlo(self.config.host))
        await self._channel.execute(AUTH_LOGIN)
        await self._channel.execute(f"{to_base64(username)}\r\n", sensitive=True)
        encoded_password = to_base64(password) if password else ""
        reply = await self._channel.execute(f"{encoded_password}\r\n", sensitive=True)

        if not reply.contains(AUTHENTICATION_SUCCESS):
            logger.info(
                "SMTP login rejected (host=%s, code=%s)", self.config.host, reply.code_or_keyword
            )
            return False

        self.state = SessionState.AUTHENTICATED
        return True

    async def close(self) -> None:
        """Release the connection."""
        await self._transport.close()
        self.state = SessionState.DISCONNECTED

    async def __aenter__(self) -> "SmtpSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
