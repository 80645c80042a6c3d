"""Configuration settings for mailprobe using pydantic-settings."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mailprobe.checks.config import CheckConfig
from mailprobe.exceptions import ConfigError


class ConfigFileError(ConfigError):
    """Configuration error located in a config file."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        line: int | None = None,
        col: int | None = None,
    ) -> None:
        self.file_path = file_path
        self.line = line
        self.col = col
        full_message = message
        if file_path:
            location = f" in {file_path}"
            if line is not None:
                location += f" at line {line}"
                if col is not None:
                    location += f", column {col}"
            full_message = f"Configuration error{location}: {message}"
        super().__init__(full_message)


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source that loads configuration from a YAML file.

    Looks for config file in the following order:
    1. MAILPROBE_CONFIG_FILE environment variable
    2. ./mailprobe.yaml (current directory)
    3. $XDG_CONFIG_HOME/mailprobe/config.yaml (defaults to ~/.config)
    """

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        yaml_data = self._load_yaml_config()
        return yaml_data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        if not hasattr(self, "_yaml_data"):
            self._yaml_data = self._read_yaml_file()
        return self._yaml_data

    def _read_yaml_file(self) -> dict[str, Any]:
        xdg_config = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        config_paths = [
            os.environ.get("MAILPROBE_CONFIG_FILE"),
            Path.cwd() / "mailprobe.yaml",
            Path(xdg_config) / "mailprobe" / "config.yaml",
        ]

        for path in config_paths:
            if not path:
                continue
            path_obj = Path(path)
            if not path_obj.exists():
                continue
            try:
                with open(path_obj) as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                mark = getattr(e, "problem_mark", None)
                raise ConfigFileError(
                    f"Invalid YAML syntax: {getattr(e, 'problem', None) or e}",
                    file_path=str(path_obj),
                    line=mark.line + 1 if mark else None,
                    col=mark.column + 1 if mark else None,
                ) from e
            except OSError as e:
                raise ConfigFileError(
                    f"Cannot read config file: {e}",
                    file_path=str(path_obj),
                ) from e
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise ConfigFileError(
                    "Top level of the config file must be a mapping",
                    file_path=str(path_obj),
                )
            return data

        return {}


def _parse_validation_error(error: ValidationError) -> str:
    """Convert a pydantic ValidationError to a user-friendly message."""
    errors = error.errors()
    if not errors:
        return "Unknown validation error"

    err = errors[0]
    loc = err.get("loc", ())
    msg = err.get("msg", "")
    field = ".".join(str(part) for part in loc)

    if err.get("type") == "missing" and loc:
        return f"Missing required field '{field}'"
    if err.get("type") == "union_tag_invalid":
        return f"Invalid check type at '{field}': expected 'smtp' or 'imap'"
    if err.get("type") == "string_pattern_mismatch" and loc and loc[-1] == "name":
        return (
            "Check name must start with a letter and contain only letters, numbers, "
            "hyphens, and underscores (e.g., 'outbound', 'support-inbox')"
        )
    if loc:
        return f"Invalid value for '{field}': {msg}"
    return msg or str(error)


class Settings(BaseSettings):
    """Application settings loaded from environment variables with MAILPROBE_ prefix.

    Health checks are configured in the YAML file:
        checks:
          - name: "outbound"
            type: "smtp"
            host: "smtp.example.com"
            port: 587
            username: "monitor@example.com"
          - name: "inbox"
            type: "imap"
            host: "imap.example.com"
            port: 993
            username: "monitor@example.com"
            folder:
              check_folder: true
              folder_name: "INBOX"

    Passwords left out of the file are read by the credential backend
    (e.g., MAILPROBE_CHECK_OUTBOUND_PASSWORD).
    """

    model_config = SettingsConfigDict(env_prefix="MAILPROBE_")

    checks: list[CheckConfig] = []

    # Overall deadline for one check invocation, in seconds
    default_timeout: float = Field(default=30.0, gt=0)

    @field_validator("checks")
    @classmethod
    def _validate_unique_names(cls, v: list[CheckConfig]) -> list[CheckConfig]:
        seen: set[str] = set()
        for check in v:
            if check.name in seen:
                raise ValueError(f"Duplicate check name: {check.name}")
            seen.add(check.name)
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


def get_settings_eager() -> Settings:
    """Load settings, failing fast with a readable message.

    Raises:
        ConfigError: If the configuration file or its values are invalid.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigError(_parse_validation_error(e)) from e
