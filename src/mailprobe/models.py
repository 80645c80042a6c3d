"""Data models for mailprobe."""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

_LINE_INJECTION_RE = re.compile(r"[\r\n\0]")


def reject_line_breaks(value: str) -> str:
    """Reject values that would terminate a protocol command line early.

    Raises:
        ValueError: If the value contains newline, carriage return, or null characters.
    """
    if _LINE_INJECTION_RE.search(value):
        raise ValueError("Value contains invalid characters (newline, carriage return, or null)")
    return value


class ConnectionType(str, Enum):
    """Transport security mode for a mail connection.

    AUTO is never used on the wire: it is resolved to one of the concrete
    modes from the port number before any command is sent.
    """

    AUTO = "auto"
    PLAIN = "plain"
    SSL = "ssl"  # implicit TLS from the first byte
    TLS = "tls"  # plaintext, then STARTTLS


class SessionState(str, Enum):
    """Lifecycle of a single mail protocol session."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    SECURED = "secured"
    AUTHENTICATED = "authenticated"
    FOLDER_SELECTED = "folder_selected"


class ConnectionConfig(BaseModel):
    """Where and how to reach a mail server."""

    host: str = Field(..., min_length=1, description="Mail server hostname")
    port: int = Field(..., ge=1, le=65535, description="Mail server port")
    connection_type: ConnectionType = Field(
        default=ConnectionType.AUTO,
        description="Transport security mode (auto resolves from the port)",
    )
    allow_invalid_certificates: bool = Field(
        default=False,
        description="Skip certificate validation (self-signed test servers only)",
    )
    timeout: float = Field(default=10.0, gt=0, description="Per-operation I/O timeout in seconds")

    @field_validator("host")
    @classmethod
    def _validate_host(cls, v: str) -> str:
        return reject_line_breaks(v)


class Credentials(BaseModel):
    """Login for a mail server. The password may be empty but never None."""

    username: str = Field(..., min_length=1)
    password: SecretStr = SecretStr("")

    @field_validator("username")
    @classmethod
    def _validate_username(cls, v: str) -> str:
        return reject_line_breaks(v)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v: SecretStr) -> SecretStr:
        reject_line_breaks(v.get_secret_value())
        return v


class FolderProbe(BaseModel):
    """Optional IMAP mailbox that must be selectable for the check to pass."""

    check_folder: bool = False
    folder_name: str = Field(default="INBOX", min_length=1)

    @field_validator("folder_name")
    @classmethod
    def _validate_folder_name(cls, v: str) -> str:
        return reject_line_breaks(v)


class Response(BaseModel):
    """One logical server reply, possibly spanning several lines."""

    code_or_keyword: str
    full_text: str
    lines: list[str] = []

    def contains(self, marker: str) -> bool:
        """Return True if the reply text contains the given marker."""
        return marker in self.full_text


class HealthStatus(str, Enum):
    """Outcome reported to the health-check framework."""

    HEALTHY = "Healthy"
    DEGRADED = "Degraded"
    UNHEALTHY = "Unhealthy"


class FailureKind(str, Enum):
    """Why a check did not report Healthy."""

    CONNECTION = "connection"
    NEGOTIATION = "negotiation"
    AUTHENTICATION = "authentication"
    FOLDER = "folder"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"


class HealthCheckResult(BaseModel):
    """Result of a single health-check invocation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: HealthStatus
    description: str | None = None
    failure: FailureKind | None = None
    exception: BaseException | None = None

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    @classmethod
    def healthy(cls, description: str | None = None) -> "HealthCheckResult":
        return cls(status=HealthStatus.HEALTHY, description=description)

    @classmethod
    def failed(
        cls,
        status: HealthStatus,
        failure: FailureKind,
        description: str | None = None,
        exception: BaseException | None = None,
    ) -> "HealthCheckResult":
        """Build a negative result, using the exception text when no description is given."""
        if description is None and exception is not None:
            description = str(exception)
        return cls(status=status, failure=failure, description=description, exception=exception)
