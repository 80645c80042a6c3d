"""SMTP server health check."""

from mailprobe.checks.base import HealthCheck
from mailprobe.checks.config import SmtpCheckConfig
from mailprobe.mail.smtp import SmtpSession, resolve_connection_type
from mailprobe.models import Credentials, FailureKind, HealthCheckResult


class SmtpHealthCheck(HealthCheck):
    """Verify an SMTP server answers EHLO and, if configured, accepts AUTH LOGIN."""

    config: SmtpCheckConfig

    def __init__(self, config: SmtpCheckConfig, credentials: Credentials | None = None) -> None:
        """Initialize the check.

        Raises:
            ConfigError: If the connection type cannot be resolved for the port.
        """
        super().__init__(config, credentials)
        self.connection_type = resolve_connection_type(config.connection_type, config.port)

    async def _probe(self) -> HealthCheckResult:
        host, port = self.config.host, self.config.port

        async with SmtpSession(self.config) as session:
            if not await session.connect():
                return self._failed(
                    FailureKind.CONNECTION,
                    f"Could not connect to smtp server {host}:{port} - "
                    f"connection type: {self.config.connection_type.value}",
                )

            if self.credentials is not None:
                authenticated = await session.authenticate(
                    self.credentials.username,
                    self.credentials.password.get_secret_value(),
                )
                if not authenticated:
                    return self._failed(
                        FailureKind.AUTHENTICATION,
                        f"Error login to smtp server {host}:{port} with configured credentials",
                    )

        return HealthCheckResult.healthy()
