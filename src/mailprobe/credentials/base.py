"""Credential backends and the login assembled from them."""

from abc import ABC, abstractmethod

from pydantic import SecretStr, ValidationError

from mailprobe.exceptions import ConfigError
from mailprobe.models import Credentials


class CredentialBackend(ABC):
    """Source of passwords for checks that name a username but carry no password.

    A backend signals a missing password by raising CredentialNotFoundError.
    An empty password is a valid answer: some test and relay servers accept a
    blank password, and AUTH LOGIN sends it as an empty line.
    """

    @abstractmethod
    def get_password(self, check_name: str) -> SecretStr:
        """Retrieve the password for the given check.

        Args:
            check_name: The unique name of the health check.

        Returns:
            The password as a SecretStr (possibly empty, never None).

        Raises:
            CredentialNotFoundError: If the credential is not found.
        """
        ...

    def get_credentials(
        self,
        check_name: str,
        username: str,
        password: SecretStr | None = None,
    ) -> Credentials:
        """Build the login for a check.

        A password from the check configuration wins; the backend is only
        asked when none is configured.

        Raises:
            CredentialNotFoundError: If the backend has no password for the check.
            ConfigError: If the username or password would break a protocol line,
                or the backend returned something other than a SecretStr.
        """
        if password is None:
            password = self.get_password(check_name)

        try:
            return Credentials(username=username, password=password)
        except ValidationError as e:
            raise ConfigError(f"Invalid credentials for check '{check_name}': {e}") from e
