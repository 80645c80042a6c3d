"""Environment variable credential backend."""

import logging
import os
import re

from pydantic import SecretStr

from mailprobe.credentials.base import CredentialBackend
from mailprobe.exceptions import CredentialNotFoundError

logger = logging.getLogger(__name__)


def normalize_check_name(check_name: str) -> str:
    """Normalize a check name for use in environment variable names.

    For example:
    - "outbound" -> "OUTBOUND"
    - "support-inbox" -> "SUPPORT_INBOX"
    """
    return re.sub(r"[^a-zA-Z0-9]", "_", check_name).upper()


class EnvCredentialBackend(CredentialBackend):
    """Credential backend using environment variables.

    Looks for passwords in MAILPROBE_CHECK_{NAME}_PASSWORD, where {NAME} is
    the normalized check name. A variable that is set but empty yields an
    empty password; servers that accept a blank password are valid targets.
    """

    def get_password(self, check_name: str) -> SecretStr:
        """Retrieve password from environment variable.

        Raises:
            CredentialNotFoundError: If the environment variable is not set.
        """
        env_key = f"MAILPROBE_CHECK_{normalize_check_name(check_name)}_PASSWORD"

        logger.debug("Looking up password (env_key=%s)", env_key)

        value = os.environ.get(env_key)
        if value is None:
            raise CredentialNotFoundError(check_name, env_key)

        return SecretStr(value)
