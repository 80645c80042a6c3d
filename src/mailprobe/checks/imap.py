"""IMAP server health check."""

from mailprobe.checks.base import HealthCheck
from mailprobe.checks.config import ImapCheckConfig
from mailprobe.mail.imap import ImapSession, resolve_imap_connection_type
from mailprobe.models import Credentials, FailureKind, HealthCheckResult


class ImapHealthCheck(HealthCheck):
    """Verify an IMAP server greets, accepts LOGIN and, if configured, can SELECT a folder."""

    config: ImapCheckConfig

    def __init__(self, config: ImapCheckConfig, credentials: Credentials | None = None) -> None:
        super().__init__(config, credentials)
        self.connection_type = resolve_imap_connection_type(config.connection_type, config.port)

    async def _probe(self) -> HealthCheckResult:
        async with ImapSession(self.config) as session:
            if not await session.connect():
                return self._failed(
                    FailureKind.CONNECTION,
                    f"Connection to server {self.config.host} has failed - "
                    f"connection type: {self.config.connection_type.value}",
                )

            if self.credentials is None:
                return HealthCheckResult.healthy()

            authenticated = await session.authenticate(
                self.credentials.username,
                self.credentials.password.get_secret_value(),
            )
            if not authenticated:
                return self._failed(
                    FailureKind.AUTHENTICATION,
                    f"Login on server {self.config.host} failed with configured user",
                )

            folder = self.config.folder
            if folder.check_folder and not await session.select_folder(folder.folder_name):
                return self._failed(
                    FailureKind.FOLDER,
                    f"Folder {folder.folder_name} check failed.",
                )

        return HealthCheckResult.healthy()
