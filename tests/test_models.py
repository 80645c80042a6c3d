"""Tests for data models."""

import pytest
from pydantic import SecretStr, ValidationError

from mailprobe.exceptions import TransportError
from mailprobe.models import (
    ConnectionConfig,
    ConnectionType,
    Credentials,
    FailureKind,
    FolderProbe,
    HealthCheckResult,
    HealthStatus,
    Response,
)


class TestConnectionConfig:
    def test_defaults(self):
        config = ConnectionConfig(host="smtp.example.com", port=587)
        assert config.connection_type == ConnectionType.AUTO
        assert config.allow_invalid_certificates is False
        assert config.timeout == 10.0

    def test_connection_type_from_string(self):
        config = ConnectionConfig(host="smtp.example.com", port=25, connection_type="plain")
        assert config.connection_type == ConnectionType.PLAIN

    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_range(self, port):
        with pytest.raises(ValidationError):
            ConnectionConfig(host="smtp.example.com", port=port)

    def test_host_rejects_line_breaks(self):
        with pytest.raises(ValidationError, match="invalid characters"):
            ConnectionConfig(host="smtp.example.com\r\nQUIT", port=25)


class TestCredentials:
    def test_password_defaults_to_empty(self):
        credentials = Credentials(username="svc")
        assert credentials.password.get_secret_value() == ""

    def test_password_is_secret(self):
        credentials = Credentials(username="svc", password=SecretStr("secret"))
        assert "secret" not in repr(credentials)

    def test_username_rejects_line_breaks(self):
        with pytest.raises(ValidationError):
            Credentials(username="svc\nRSET")

    def test_password_rejects_null(self):
        with pytest.raises(ValidationError):
            Credentials(username="svc", password=SecretStr("pa\0ss"))


class TestFolderProbe:
    def test_defaults(self):
        probe = FolderProbe()
        assert probe.check_folder is False
        assert probe.folder_name == "INBOX"


class TestResponse:
    def test_contains_searches_full_text(self):
        response = Response(
            code_or_keyword="250",
            full_text="250-smtp.example.com\n250 AUTH LOGIN",
            lines=["250-smtp.example.com", "250 AUTH LOGIN"],
        )
        assert response.contains("AUTH LOGIN")
        assert not response.contains("STARTTLS")


class TestHealthCheckResult:
    def test_healthy(self):
        result = HealthCheckResult.healthy()
        assert result.is_healthy
        assert result.failure is None
        assert result.exception is None

    def test_failed_uses_exception_text(self):
        error = TransportError("Connect failed: refused", "smtp.example.com", 25)

        result = HealthCheckResult.failed(
            HealthStatus.DEGRADED, FailureKind.TRANSPORT, exception=error
        )

        assert not result.is_healthy
        assert result.status == HealthStatus.DEGRADED
        assert result.description == "Connect failed: refused (smtp.example.com:25)"
        assert result.exception is error

    def test_failed_keeps_explicit_description(self):
        result = HealthCheckResult.failed(
            HealthStatus.UNHEALTHY, FailureKind.FOLDER, "Folder Archive check failed."
        )
        assert result.description == "Folder Archive check failed."
