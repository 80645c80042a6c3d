"""Custom exceptions for mailprobe."""


class MailProbeError(Exception):
    """Base exception for mailprobe."""


class ConfigError(MailProbeError):
    """Raised when there is a configuration error."""


class CredentialNotFoundError(ConfigError):
    """Raised when the password for a check is not found."""

    def __init__(self, check_name: str, env_key: str) -> None:
        self.check_name = check_name
        self.env_key = env_key
        super().__init__(
            f"Missing credential for check '{check_name}': "
            f"environment variable {env_key} is not set"
        )


class CheckNotFoundError(MailProbeError):
    """Raised when a requested health check is not configured."""

    def __init__(self, check_name: str) -> None:
        self.check_name = check_name
        super().__init__(f"Health check not found: {check_name}")


class TransportError(MailProbeError):
    """Raised when the network connection to a mail server fails."""

    def __init__(self, message: str, host: str | None = None, port: int | None = None) -> None:
        self.host = host
        self.port = port
        if host is not None:
            message = f"{message} ({host}:{port})"
        super().__init__(message)


class ConnectionClosedError(TransportError):
    """Raised when the server closes the connection before a reply is complete."""


class StartTlsError(MailProbeError):
    """Raised when the server refuses to upgrade a plaintext session with STARTTLS."""

    def __init__(self, protocol: str, reply: str = "") -> None:
        self.protocol = protocol
        self.reply = reply
        message = f"Could not upgrade {protocol} non SSL connection using STARTTLS handshake"
        if reply:
            message = f"{message}: {reply}"
        super().__init__(message)
