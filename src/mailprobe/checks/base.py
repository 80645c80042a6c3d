"""Abstract base class for mail health checks."""

import asyncio
import logging
from abc import ABC, abstractmethod

from mailprobe.checks.config import BaseCheckConfig
from mailprobe.exceptions import StartTlsError, TransportError
from mailprobe.models import Credentials, FailureKind, HealthCheckResult

logger = logging.getLogger(__name__)


class HealthCheck(ABC):
    """Probe one mail server and report Healthy or the configured failure status.

    Negative server replies come back as result data. Network failures and
    refused STARTTLS upgrades are reported the same way with the exception
    attached. Configuration errors, cancellation and unexpected exceptions
    propagate to the caller.
    """

    def __init__(self, config: BaseCheckConfig, credentials: Credentials | None = None) -> None:
        """Initialize the check.

        Args:
            config: Server and check configuration.
            credentials: Login to verify; None skips authentication.
        """
        self.config = config
        self.credentials = credentials

    @property
    def name(self) -> str:
        return self.config.name

    async def check_health(self, *, timeout: float | None = None) -> HealthCheckResult:
        """Run the probe once with a fresh session.

        Args:
            timeout: Overall deadline in seconds for the whole invocation.

        Returns:
            The health-check result.
        """
        try:
            async with asyncio.timeout(timeout):
                result = await self._probe()
        except TransportError as e:
            logger.info("Health check %s failed: %s", self.name, e)
            return self._failed(FailureKind.TRANSPORT, exception=e)
        except StartTlsError as e:
            logger.info("Health check %s failed: %s", self.name, e)
            return self._failed(FailureKind.NEGOTIATION, exception=e)
        except TimeoutError as e:
            logger.info("Health check %s timed out after %ss", self.name, timeout)
            return self._failed(
                FailureKind.TIMEOUT,
                f"Health check {self.name} timed out after {timeout}s",
                exception=e,
            )

        logger.debug("Health check %s finished (status=%s)", self.name, result.status.value)
        return result

    @abstractmethod
    async def _probe(self) -> HealthCheckResult:
        """Connect, optionally authenticate, and map the outcome to a result."""
        ...

    def _failed(
        self,
        failure: FailureKind,
        description: str | None = None,
        exception: BaseException | None = None,
    ) -> HealthCheckResult:
        return HealthCheckResult.failed(
            self.config.failure_status,
            failure,
            description=description,
            exception=exception,
        )
