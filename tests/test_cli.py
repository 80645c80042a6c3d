"""Tests for the mailprobe command line."""

from unittest.mock import AsyncMock, patch

import pytest

from mailprobe.checks.config import SmtpCheckConfig
from mailprobe.checks.service import CheckService
from mailprobe.cli import main
from mailprobe.config import Settings
from mailprobe.exceptions import ConfigError
from mailprobe.models import FailureKind, HealthCheckResult, HealthStatus


@pytest.fixture
def settings() -> Settings:
    return Settings(
        checks=[
            SmtpCheckConfig(name="outbound", host="smtp.example.com", port=587),
            SmtpCheckConfig(name="relay", host="relay.example.com", port=25),
        ],
        default_timeout=8.0,
    )


class TestCli:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "usage: mailprobe" in capsys.readouterr().out

    def test_list(self, settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("mailprobe.config.get_settings_eager", return_value=settings):
            assert main(["list"]) == 0

        assert capsys.readouterr().out.splitlines() == ["outbound", "relay"]

    def test_list_empty(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("mailprobe.config.get_settings_eager", return_value=Settings(checks=[])):
            assert main(["list"]) == 0

        assert "No health checks configured" in capsys.readouterr().out

    def test_check_all_healthy(
        self, settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        results = {
            "outbound": HealthCheckResult.healthy(),
            "relay": HealthCheckResult.healthy(),
        }
        with (
            patch("mailprobe.config.get_settings_eager", return_value=settings),
            patch.object(CheckService, "run_all", AsyncMock(return_value=results)) as run_all,
        ):
            assert main(["check"]) == 0

        run_all.assert_awaited_once_with(None, timeout=None)
        assert capsys.readouterr().out.splitlines() == ["outbound: Healthy", "relay: Healthy"]

    def test_check_failure_sets_exit_code(
        self, settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        results = {
            "relay": HealthCheckResult.failed(
                HealthStatus.UNHEALTHY,
                FailureKind.AUTHENTICATION,
                "Error login to smtp server relay.example.com:25 with configured credentials",
            ),
        }
        with (
            patch("mailprobe.config.get_settings_eager", return_value=settings),
            patch.object(CheckService, "run_all", AsyncMock(return_value=results)) as run_all,
        ):
            assert main(["check", "relay", "--timeout", "3"]) == 1

        run_all.assert_awaited_once_with(["relay"], timeout=3.0)
        assert capsys.readouterr().out.strip() == (
            "relay: Unhealthy - Error login to smtp server relay.example.com:25 "
            "with configured credentials"
        )

    def test_unknown_check_is_reported(
        self, settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch("mailprobe.config.get_settings_eager", return_value=settings):
            assert main(["check", "missing"]) == 2

        assert "Health check not found: missing" in capsys.readouterr().err

    def test_config_error_is_reported(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch(
            "mailprobe.config.get_settings_eager",
            side_effect=ConfigError("Duplicate check name: relay"),
        ):
            assert main(["list"]) == 2

        assert "✗ Duplicate check name: relay" in capsys.readouterr().err
