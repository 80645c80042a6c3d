"""Health-check configuration models with a discriminated union on ``type``."""

from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator

from mailprobe.models import ConnectionConfig, FolderProbe, HealthStatus, reject_line_breaks


class BaseCheckConfig(ConnectionConfig):
    """Configuration shared by all mail health checks.

    Attributes:
        name: Unique identifier for the check (e.g., "outbound", "support-inbox").
        username: Login to verify. When omitted the check stops after connect.
        password: Password for username. When omitted it is looked up through
            the credential backend.
        failure_status: Status reported for every negative outcome.
    """

    name: str = Field(
        ...,
        min_length=1,
        pattern=r"^[a-zA-Z][a-zA-Z0-9_-]*$",
        description="Unique check identifier (alphanumeric, hyphens, underscores)",
    )
    username: str | None = Field(default=None, min_length=1, description="Login username")
    password: SecretStr | None = Field(default=None, description="Login password")
    failure_status: HealthStatus = Field(
        default=HealthStatus.UNHEALTHY,
        description="Status reported when the check fails",
    )

    @field_validator("username")
    @classmethod
    def _validate_username(cls, v: str | None) -> str | None:
        return reject_line_breaks(v) if v is not None else v

    @field_validator("failure_status")
    @classmethod
    def _validate_failure_status(cls, v: HealthStatus) -> HealthStatus:
        if v == HealthStatus.HEALTHY:
            raise ValueError("failure_status cannot be Healthy")
        return v


class SmtpCheckConfig(BaseCheckConfig):
    """SMTP server check: connect + EHLO, optionally STARTTLS and AUTH LOGIN."""

    type: Literal["smtp"] = Field(default="smtp", description="Check type (smtp)")


class ImapCheckConfig(BaseCheckConfig):
    """IMAP server check: connect, optionally LOGIN and SELECT a folder."""

    type: Literal["imap"] = Field(default="imap", description="Check type (imap)")
    folder: FolderProbe = Field(
        default_factory=FolderProbe,
        description="Mailbox that must be selectable after login",
    )


CheckConfig = Annotated[SmtpCheckConfig | ImapCheckConfig, Field(discriminator="type")]
