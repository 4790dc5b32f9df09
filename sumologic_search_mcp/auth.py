"""Credential handling for the Sumo Logic Search Job API."""

import base64
import logging
from typing import Dict
from urllib.parse import urlparse

from .config import SumoSearchConfig
from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


class SumoLogicAuth:
    """Builds authentication headers from an access ID/key pair.

    The Search Job API uses HTTP basic authentication with the access ID as
    user name and the access key as password; there is no session to manage.
    """

    def __init__(self, config: SumoSearchConfig):
        """Initialize authentication manager with configuration.

        Args:
            config: Configuration containing credentials and endpoint

        Raises:
            ConfigurationError: If required credentials are missing or invalid
        """
        self.config = config
        self._validate_credentials()

        logger.info(
            "Initialized Sumo Logic authentication",
            extra={
                "endpoint": self.config.endpoint,
                "access_id": self.masked_access_id
            }
        )

    @property
    def masked_access_id(self) -> str:
        return self.config.access_id[:4] + "..." if self.config.access_id else ""

    def _validate_credentials(self) -> None:
        if not self.config.access_id:
            raise ConfigurationError(
                "Sumo Logic Access ID is required",
                config_key="access_id"
            )

        if not self.config.access_key:
            raise ConfigurationError(
                "Sumo Logic Access Key is required",
                config_key="access_key"
            )

        if not self.config.endpoint:
            raise ConfigurationError(
                "Sumo Logic API endpoint is required",
                config_key="endpoint"
            )

        parsed = urlparse(self.config.endpoint)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigurationError(
                "Invalid Sumo Logic endpoint: invalid URL format",
                config_key="endpoint",
                config_value=self.config.endpoint
            )

    def get_auth_headers(self) -> Dict[str, str]:
        """Get authentication headers for API requests.

        Returns:
            Dictionary containing the Authorization header
        """
        auth_string = f"{self.config.access_id}:{self.config.access_key}"
        auth_b64 = base64.b64encode(auth_string.encode('utf-8')).decode('ascii')
        return {"Authorization": f"Basic {auth_b64}"}
