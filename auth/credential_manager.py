"""
Credential manager for the ESPN fantasy API.
Loads the espn_s2 and SWID session cookies for both local and CI environments.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from auth.config import COOKIE_FILE, ESPN_S2_ENV, ESPN_SWID_ENV
from data_pipeline.common.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _mask(value: str) -> str:
    if len(value) <= 8:
        return '*' * len(value)
    return f"{value[:4]}...{value[-4:]}"


@dataclass(frozen=True)
class ESPNCredentials:
    """The two opaque cookies that authorize private league reads."""

    espn_s2: str
    swid: str

    def cookies(self) -> Dict[str, str]:
        """Cookie jar form for requests."""
        return {'espn_s2': self.espn_s2, 'SWID': self.swid}

    def masked(self) -> Dict[str, str]:
        return {'espn_s2': _mask(self.espn_s2), 'SWID': _mask(self.swid)}


def validate_credentials(credentials: Optional[ESPNCredentials]) -> ESPNCredentials:
    """
    Ensure both cookies are present and non-blank.

    Raises:
        ConfigurationError: If either cookie is missing
    """
    if credentials is None:
        raise ConfigurationError("ESPN credentials were not provided")
    missing = [
        name for name, value in (('espn_s2', credentials.espn_s2), ('SWID', credentials.swid))
        if not isinstance(value, str) or not value.strip()
    ]
    if missing:
        raise ConfigurationError(
            f"ESPN authentication cookies not found ({', '.join(missing)}). "
            f"Check {ESPN_S2_ENV} and {ESPN_SWID_ENV} in .env"
        )
    return credentials


class ESPNCredentialManager:
    """Reads ESPN cookies from the environment or a local cookie file."""

    def __init__(self, cookie_file: Optional[Path] = None):
        """
        Initialize credential manager.

        Args:
            cookie_file: Optional JSON file with 'espn_s2' and 'SWID' keys
        """
        self.cookie_file = Path(cookie_file) if cookie_file else COOKIE_FILE

    def _load_from_file(self) -> Dict[str, str]:
        if not self.cookie_file.exists():
            return {}
        try:
            with open(self.cookie_file, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not read cookie file {self.cookie_file}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Cookie file {self.cookie_file} must contain a JSON object")
        return data

    def get_credentials(self) -> ESPNCredentials:
        """
        Get the current credentials.

        Environment variables win; the cookie file only fills in what is missing.

        Returns:
            ESPNCredentials

        Raises:
            ConfigurationError: If either cookie cannot be found
        """
        espn_s2 = os.getenv(ESPN_S2_ENV)
        swid = os.getenv(ESPN_SWID_ENV)

        if not espn_s2 or not swid:
            file_values = self._load_from_file()
            espn_s2 = espn_s2 or file_values.get('espn_s2')
            swid = swid or file_values.get('SWID') or file_values.get('swid')
            if file_values:
                logger.debug(f"Loaded ESPN cookies from {self.cookie_file}")

        credentials = validate_credentials(ESPNCredentials(espn_s2=espn_s2 or '', swid=swid or ''))
        logger.debug(f"Using ESPN credentials {credentials.masked()}")
        return credentials

    # Lets the manager be passed anywhere a zero-arg credential provider is expected
    __call__ = get_credentials
