"""Configuration management for the Sumo Logic search MCP server."""

import json
import os
import re
from pathlib import Path
from typing import Optional, Dict, Any, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, PrivateAttr, validator
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


DEFAULT_TIME_ZONE = "Asia/Hong_Kong"


class SumoSearchConfig(BaseModel):
    """Configuration for the Sumo Logic search MCP server."""

    # Sumo Logic API credentials
    access_id: str = Field(..., description="Sumo Logic Access ID")
    access_key: str = Field(..., description="Sumo Logic Access Key")
    endpoint: str = Field(..., description="Sumo Logic API endpoint")

    # HTTP client behaviour
    timeout: int = Field(default=30, description="Request timeout in seconds")
    max_retries: int = Field(default=3, description="Maximum retry attempts")
    rate_limit_delay: float = Field(
        default=1.0,
        description="Base delay between retried requests in seconds"
    )

    # Search job behaviour
    time_zone: str = Field(
        default=DEFAULT_TIME_ZONE,
        description="Time zone sent with every search job and used for default time ranges"
    )
    poll_interval: float = Field(
        default=1.0,
        description="Delay between search job status checks in seconds"
    )
    max_wait: int = Field(
        default=300,
        description="Maximum time to wait for a search job to finish in seconds"
    )
    fail_soft: bool = Field(
        default=True,
        description="Return an empty result instead of an error when a search fails"
    )

    # Extra regex patterns added to the default masking policy
    mask_patterns: List[str] = Field(
        default_factory=list,
        description="Additional regular expressions whose matches are masked"
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")

    # MCP server configuration
    server_name: str = Field(default="sumologic-search-mcp", description="MCP server name")
    server_version: str = Field(default="0.1.0", description="MCP server version")

    _config_sources: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @validator("endpoint")
    def validate_endpoint(cls, v: str) -> str:
        """Validate Sumo Logic endpoint URL."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Endpoint must be a valid HTTP/HTTPS URL")
        return v.rstrip("/")

    @validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(sorted(valid_levels))}")
        return v_upper

    @validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        valid_formats = {"json", "text"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Log format must be one of: {', '.join(sorted(valid_formats))}")
        return v_lower

    @validator("timeout")
    def validate_timeout(cls, v: int) -> int:
        return _bounded("timeout", v, minimum=1, maximum=300)

    @validator("max_retries")
    def validate_max_retries(cls, v: int) -> int:
        return _bounded("max_retries", v, minimum=0, maximum=10)

    @validator("rate_limit_delay")
    def validate_rate_limit_delay(cls, v: float) -> float:
        return _bounded("rate_limit_delay", v, minimum=0, maximum=60)

    @validator("time_zone")
    def validate_time_zone(cls, v: str) -> str:
        """Validate that the time zone is a known IANA zone name."""
        v = v.strip()
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone '{v}'") from e
        return v

    @validator("mask_patterns")
    def validate_mask_patterns(cls, v: List[str]) -> List[str]:
        """Validate that every extra mask pattern compiles."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid mask pattern '{pattern}': {e}") from e
        return v

    @validator("poll_interval")
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll_interval must be greater than 0")
        return _bounded("poll_interval", v, minimum=0, maximum=60)

    @validator("max_wait")
    def validate_max_wait(cls, v: int) -> int:
        return _bounded("max_wait", v, minimum=1, maximum=3600)

    @classmethod
    def from_env_and_file(cls, config_path: Optional[Path] = None) -> "SumoSearchConfig":
        """Create configuration from environment variables and optional config file.

        Environment variables take precedence over config file values, and the
        short ``SUMO_*`` credential variables take precedence over the
        ``SUMOLOGIC_*`` ones.

        Args:
            config_path: Optional path to JSON configuration file

        Returns:
            SumoSearchConfig instance

        Raises:
            ValueError: If configuration file is invalid or environment variables have invalid values
            FileNotFoundError: If specified config file doesn't exist
        """
        config_data: Dict[str, Any] = {
            "access_id": "",
            "access_key": "",
            "endpoint": "",
        }

        config_sources: Dict[str, Any] = {
            "file_loaded": False,
            "file_path": None,
            "env_vars_found": [],
        }

        if config_path:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")

            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
            except IOError as e:
                raise ValueError(f"Error reading configuration file {config_path}: {e}")

            if not isinstance(file_config, dict):
                raise ValueError(
                    f"Configuration file must contain a JSON object, got {type(file_config).__name__}"
                )

            config_data.update(file_config)
            config_sources["file_loaded"] = True
            config_sources["file_path"] = str(config_path)

        # Later entries win when both variables of a pair are set
        env_mappings = {
            "SUMOLOGIC_ACCESS_ID": ("access_id", str),
            "SUMOLOGIC_ACCESS_KEY": ("access_key", str),
            "SUMOLOGIC_ENDPOINT": ("endpoint", str),
            "SUMOLOGIC_TIMEOUT": ("timeout", int),
            "SUMOLOGIC_MAX_RETRIES": ("max_retries", int),
            "SUMOLOGIC_RATE_LIMIT_DELAY": ("rate_limit_delay", float),
            "SUMOLOGIC_TIME_ZONE": ("time_zone", str),
            "SUMOLOGIC_POLL_INTERVAL": ("poll_interval", float),
            "SUMOLOGIC_MAX_WAIT": ("max_wait", int),
            "SUMOLOGIC_FAIL_SOFT": ("fail_soft", bool),
            "SUMOLOGIC_MASK_PATTERNS": ("mask_patterns", list),
            "SUMOLOGIC_LOG_LEVEL": ("log_level", str),
            "SUMOLOGIC_LOG_FORMAT": ("log_format", str),
            "SUMOLOGIC_SERVER_NAME": ("server_name", str),
            "SUMOLOGIC_SERVER_VERSION": ("server_version", str),

            "SUMO_ACCESS_ID": ("access_id", str),
            "SUMO_ACCESS_KEY": ("access_key", str),
            "SUMO_ENDPOINT": ("endpoint", str),
        }

        for env_var, (config_key, value_type) in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is None:
                continue
            try:
                config_data[config_key] = _convert_env_value(env_value, value_type)
            except (ValueError, TypeError) as e:
                raise ValueError(
                    f"Invalid value for {env_var}: '{env_value}' (expected {value_type.__name__})"
                ) from e
            config_sources["env_vars_found"].append(env_var)

        config_instance = cls(**config_data)
        config_instance._config_sources = config_sources
        return config_instance

    @property
    def config_sources(self) -> Dict[str, Any]:
        """Where the configuration values were loaded from."""
        return self._config_sources

    def validate_required_fields(self) -> Dict[str, str]:
        """Validate that all required fields are present.

        Returns:
            Dictionary of validation errors (empty if valid)
        """
        errors = {}

        if not self.access_id:
            errors["access_id"] = "Sumo Logic Access ID is required. Set SUMOLOGIC_ACCESS_ID environment variable or provide in config file."

        if not self.access_key:
            errors["access_key"] = "Sumo Logic Access Key is required. Set SUMOLOGIC_ACCESS_KEY environment variable or provide in config file."

        if not self.endpoint:
            errors["endpoint"] = "Sumo Logic API endpoint is required. Set SUMOLOGIC_ENDPOINT environment variable or provide in config file."

        return errors

    def validate_startup_configuration(self) -> Dict[str, Any]:
        """Startup validation with errors and warnings.

        Returns:
            Dictionary with ``valid``, ``errors`` and ``warnings`` keys
        """
        validation_result: Dict[str, Any] = {
            "valid": True,
            "errors": [],
            "warnings": [],
        }

        for field_name, message in self.validate_required_fields().items():
            validation_result["valid"] = False
            validation_result["errors"].append({"field": field_name, "message": message})

        if self.max_wait < self.poll_interval:
            validation_result["warnings"].append({
                "field": "max_wait",
                "message": f"Max wait of {self.max_wait}s is shorter than the poll interval",
                "recommendation": "Use a max wait of at least a few poll intervals",
            })

        if self.endpoint and not self.endpoint.startswith("https://api."):
            validation_result["warnings"].append({
                "field": "endpoint",
                "message": "Endpoint should typically start with 'https://api.' for Sumo Logic",
                "recommendation": "Verify your endpoint URL is correct",
            })

        return validation_result


def _convert_env_value(raw: str, value_type: type) -> Any:
    raw = raw.strip()
    if value_type is list:
        patterns = json.loads(raw)
        if not isinstance(patterns, list):
            raise ValueError("expected a JSON array")
        return [str(pattern) for pattern in patterns]
    if value_type is bool:
        lowered = raw.lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"not a boolean: {raw}")
    return value_type(raw)


def _bounded(name: str, value, minimum, maximum):
    if not minimum <= value <= maximum:
        raise ValueError(f"{name} must be between {minimum} and {maximum}, got {value}")
    return value
