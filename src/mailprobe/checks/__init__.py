"""Mail server health checks."""

from mailprobe.checks.base import HealthCheck
from mailprobe.checks.config import (
    BaseCheckConfig,
    CheckConfig,
    ImapCheckConfig,
    SmtpCheckConfig,
)
from mailprobe.checks.imap import ImapHealthCheck
from mailprobe.checks.service import CheckService
from mailprobe.checks.smtp import SmtpHealthCheck

__all__ = [
    "BaseCheckConfig",
    "CheckConfig",
    "CheckService",
    "HealthCheck",
    "ImapCheckConfig",
    "ImapHealthCheck",
    "SmtpCheckConfig",
    "SmtpHealthCheck",
]
