"""Check service for building and running the configured health checks."""

import asyncio
import logging

from mailprobe.checks.base import HealthCheck
from mailprobe.checks.config import CheckConfig, ImapCheckConfig
from mailprobe.checks.imap import ImapHealthCheck
from mailprobe.checks.smtp import SmtpHealthCheck
from mailprobe.credentials.base import CredentialBackend
from mailprobe.exceptions import CheckNotFoundError
from mailprobe.models import Credentials, HealthCheckResult

logger = logging.getLogger(__name__)


class CheckService:
    """Service for running health checks by name.

    Every run builds a new check (and therefore a new session and
    connection); nothing is shared between runs.
    """

    def __init__(
        self,
        checks: list[CheckConfig],
        credentials: CredentialBackend,
        default_timeout: float | None = None,
    ) -> None:
        """Initialize the check service.

        Args:
            checks: Health-check configurations.
            credentials: Backend for passwords not given in the configuration.
            default_timeout: Overall deadline per check when run() gets none.
        """
        self._checks = {c.name: c for c in checks}
        self._credentials = credentials
        self._default_timeout = default_timeout

    def list_checks(self) -> list[str]:
        """Return configured check names in configuration order."""
        return list(self._checks.keys())

    def get_config(self, name: str) -> CheckConfig:
        """Get the configuration for a check.

        Raises:
            CheckNotFoundError: If no check has this name.
        """
        config = self._checks.get(name)
        if not config:
            raise CheckNotFoundError(name)
        return config

    def _resolve_credentials(self, config: CheckConfig) -> Credentials | None:
        if config.username is None:
            return None

        return self._credentials.get_credentials(config.name, config.username, config.password)

    def get_check(self, name: str) -> HealthCheck:
        """Build the health check for a configured name.

        Raises:
            CheckNotFoundError: If no check has this name.
            CredentialNotFoundError: If the password cannot be retrieved.
            ConfigError: If the connection type cannot be resolved.
        """
        config = self.get_config(name)
        credentials = self._resolve_credentials(config)

        if isinstance(config, ImapCheckConfig):
            return ImapHealthCheck(config, credentials)
        return SmtpHealthCheck(config, credentials)

    async def run(self, name: str, timeout: float | None = None) -> HealthCheckResult:
        """Run a single check."""
        check = self.get_check(name)
        return await check.check_health(timeout=self._deadline(timeout))

    async def run_all(
        self,
        names: list[str] | None = None,
        timeout: float | None = None,
    ) -> dict[str, HealthCheckResult]:
        """Run several checks concurrently.

        All checks are built before any connection is opened, so a
        configuration error aborts the run without touching the network.

        Args:
            names: Checks to run (default: all configured checks).
            timeout: Overall deadline per check.

        Returns:
            Results keyed by check name, in the order requested.

        Raises:
            ExceptionGroup: If a check raises. The remaining checks are
                cancelled and their connections closed before this is raised.
        """
        checks = [self.get_check(name) for name in (names or self.list_checks())]
        deadline = self._deadline(timeout)

        logger.debug("Running %d health checks", len(checks))
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(check.check_health(timeout=deadline)) for check in checks]
        return {check.name: task.result() for check, task in zip(checks, tasks)}

    def _deadline(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self._default_timeout
