"""Health checks that prove SMTP and IMAP servers are alive and accept logins."""

from mailprobe.checks import (
    CheckService,
    HealthCheck,
    ImapCheckConfig,
    ImapHealthCheck,
    SmtpCheckConfig,
    SmtpHealthCheck,
)
from mailprobe.config import Settings
from mailprobe.mail import ImapSession, SmtpSession, Transport
from mailprobe.models import (
    ConnectionConfig,
    ConnectionType,
    Credentials,
    FailureKind,
    FolderProbe,
    HealthCheckResult,
    HealthStatus,
)

__version__ = "0.1.0"

__all__ = [
    "CheckService",
    "ConnectionConfig",
    "ConnectionType",
    "Credentials",
    "FailureKind",
    "FolderProbe",
    "HealthCheck",
    "HealthCheckResult",
    "HealthStatus",
    "ImapCheckConfig",
    "ImapHealthCheck",
    "ImapSession",
    "Settings",
    "SmtpCheckConfig",
    "SmtpHealthCheck",
    "SmtpSession",
    "Transport",
]
