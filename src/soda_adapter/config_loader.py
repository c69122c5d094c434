"""
ConfigLoader module for loading and validating TOML client configuration files
"""

import os
import tomllib
from pathlib import Path
from dataclasses import dataclass
from typing import Dict, Any, Optional

from .exceptions import ConfigurationError, EnvironmentError


@dataclass
class SodaConfig:
    """Configuration data class for a SODA dataset client from TOML file"""
    resource_url: str
    format: str = "json"
    app_token_env: Optional[str] = None
    batch_size: int = 1000
    workers: int = 1
    timeout_seconds: Optional[float] = None


class ConfigLoader:
    """Loads and validates TOML configuration files"""

    # Required configuration sections and their mandatory keys
    REQUIRED_SECTIONS = {
        'api': ['resource_url'],
    }

    @staticmethod
    def load_toml_config(config_path: Path) -> SodaConfig:
        """
        Load client configuration from TOML file

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            SodaConfig object with all configuration data

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the TOML is invalid or required keys are missing
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'rb') as f:
                config_data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {config_path}: {e}") from e

        ConfigLoader._validate_required_sections(config_data)

        api = config_data['api']
        authentication = config_data.get('authentication', {})
        pagination = config_data.get('pagination', {})
        http = config_data.get('http', {})

        config = SodaConfig(
            resource_url=api['resource_url'],
            format=api.get('format', 'json'),
            app_token_env=authentication.get('app_token_env'),
            batch_size=pagination.get('batch_size', 1000),
            workers=pagination.get('workers', 1),
            timeout_seconds=http.get('timeout_seconds')
        )
        ConfigLoader._validate_values(config)
        return config

    @staticmethod
    def _validate_required_sections(config_data: Dict[str, Any]) -> None:
        """Check that [api] and its resource_url are present, listing everything missing"""
        missing_items = []

        for section_name, required_keys in ConfigLoader.REQUIRED_SECTIONS.items():
            if section_name not in config_data:
                missing_items.append(f"Section [{section_name}]")
            else:
                section_data = config_data[section_name]
                for key in required_keys:
                    if key not in section_data:
                        missing_items.append(f"Key '{key}' in section [{section_name}]")

        if missing_items:
            raise ConfigurationError(
                f"Missing required configuration items: {', '.join(missing_items)}"
            )

    @staticmethod
    def _validate_values(config: SodaConfig) -> None:
        if not isinstance(config.batch_size, int) or config.batch_size <= 0:
            raise ConfigurationError(f"batch_size must be a positive integer, got {config.batch_size!r}")
        if not isinstance(config.workers, int) or config.workers <= 0:
            raise ConfigurationError(f"workers must be a positive integer, got {config.workers!r}")
        if config.timeout_seconds is not None and config.timeout_seconds <= 0:
            raise ConfigurationError(f"timeout_seconds must be positive, got {config.timeout_seconds!r}")

    @staticmethod
    def validate_environment_variables(config: SodaConfig) -> bool:
        """
        Validate that all required environment variables are set

        Args:
            config: SodaConfig object to validate

        Returns:
            True if all environment variables are present

        Raises:
            EnvironmentError: If the configured app token variable is missing
        """
        if config.app_token_env and os.getenv(config.app_token_env) is None:
            raise EnvironmentError(
                f"Missing required environment variables: {config.app_token_env}"
            )
        return True

    @staticmethod
    def get_environment_value(env_var_name: str) -> str:
        """Read the app token variable, raising EnvironmentError when it is unset"""
        value = os.getenv(env_var_name)
        if value is None:
            raise EnvironmentError(f"Environment variable '{env_var_name}' is not set")
        return value

    @staticmethod
    def resolve_app_token(config: SodaConfig) -> str:
        """Return the app token named by the config, or an empty token"""
        if not config.app_token_env:
            return ""
        return ConfigLoader.get_environment_value(config.app_token_env)
