import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .exceptions import InvalidConfigurationError, MissingConfigurationError

# Load environment variables
load_dotenv(override=True)

"""
Configuration Management for Azure Cmdlets

This module provides centralized configuration management with validation
and environment variable handling.
"""


def _set_azure_http_log_level(log_level: str) -> None:
    """Set log levels for HTTP-related loggers to reduce noise."""
    http_loggers = [
        "azure.core.pipeline.policies.http_logging_policy",
        "azure.core.pipeline.policies.HttpLoggingPolicy",
        "azure.core.pipeline",
        "azure.identity",
        "azure.mgmt",
        "azure",
        "urllib3",
        "urllib3.connectionpool",
        "http.client",
        "requests.packages.urllib3",
    ]
    # HTTP logging should only appear at DEBUG level
    target_level = logging.DEBUG if log_level == "DEBUG" else logging.WARNING
    for name in http_loggers:
        logging.getLogger(name).setLevel(target_level)


logger = logging.getLogger(__name__)

DEFAULT_CERT_EXPIRY_HOURS = 120
DEFAULT_SERVICE_MANAGEMENT_ENDPOINT = "https://management.core.windows.net"
DEFAULT_SERVICE_MANAGEMENT_API_VERSION = "2015-04-01"


@dataclass
class AzureConfig:
    """Configuration for the Azure subscription the commands act on."""

    subscription_id: str = field(
        default_factory=lambda: os.getenv("AZURE_SUBSCRIPTION_ID", "")
    )
    tenant_id: Optional[str] = field(
        default_factory=lambda: os.getenv("AZURE_TENANT_ID") or None
    )

    def validate(self) -> None:
        """Validate Azure configuration."""
        if not self.subscription_id:
            raise MissingConfigurationError(
                "Azure subscription ID is required",
                missing_keys=["AZURE_SUBSCRIPTION_ID"],
            )


@dataclass
class VaultSettingsConfig:
    """Configuration for vault settings file generation."""

    output_directory: str = field(
        default_factory=lambda: os.getenv("AZCMDLETS_VAULT_SETTINGS_DIR", "")
    )
    certificate_expiry_hours: int = field(
        default_factory=lambda: int(
            os.getenv("AZCMDLETS_CERT_EXPIRY_HOURS", str(DEFAULT_CERT_EXPIRY_HOURS))
        )
    )

    def __post_init__(self) -> None:
        """Validate vault settings configuration."""
        if self.certificate_expiry_hours < 1:
            raise InvalidConfigurationError(
                "Certificate expiry must be at least 1 hour",
                config_section="vault_settings",
            )

    def get_default_path(self) -> str:
        """Directory used when a command is not given an output path."""
        return self.output_directory or tempfile.gettempdir()


@dataclass
class ServiceManagementConfig:
    """Configuration for the classic Service Management REST endpoint."""

    endpoint: str = field(
        default_factory=lambda: os.getenv(
            "AZCMDLETS_SM_ENDPOINT", DEFAULT_SERVICE_MANAGEMENT_ENDPOINT
        )
    )
    api_version: str = field(
        default_factory=lambda: os.getenv(
            "AZCMDLETS_SM_API_VERSION", DEFAULT_SERVICE_MANAGEMENT_API_VERSION
        )
    )
    poll_interval: float = field(
        default_factory=lambda: float(
            os.getenv("AZCMDLETS_OPERATION_POLL_INTERVAL", "2.0")
        )
    )
    operation_timeout: float = field(
        default_factory=lambda: float(os.getenv("AZCMDLETS_OPERATION_TIMEOUT", "300"))
    )
    http_timeout: float = field(
        default_factory=lambda: float(os.getenv("AZCMDLETS_HTTP_TIMEOUT", "60"))
    )

    def __post_init__(self) -> None:
        """Validate service management configuration."""
        if not self.endpoint.startswith("https://"):
            raise InvalidConfigurationError(
                "Service Management endpoint must use HTTPS",
                config_section="service_management",
            )
        self.endpoint = self.endpoint.rstrip("/")
        if self.poll_interval < 0:
            raise InvalidConfigurationError(
                "Operation poll interval must be non-negative",
                config_section="service_management",
            )
        if self.operation_timeout <= 0:
            raise InvalidConfigurationError(
                "Operation timeout must be positive",
                config_section="service_management",
            )

    @property
    def token_scope(self) -> str:
        """AAD scope for tokens accepted by the Service Management endpoint."""
        return f"{self.endpoint}/.default"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = field(
        default_factory=lambda: os.getenv(
            "LOG_FORMAT", "%(log_color)s%(levelname)s:%(name)s:%(message)s"
        )
    )
    file_output: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise InvalidConfigurationError(
                f"Log level must be one of: {valid_levels}", config_section="logging"
            )
        self.level = self.level.upper()

    def get_log_level(self) -> int:
        """Convert string log level to logging constant."""
        level_attr = getattr(logging, self.level, None)
        if level_attr is None:
            raise InvalidConfigurationError(
                f"Invalid log level: {self.level}", config_section="logging"
            )
        return int(level_attr)


@dataclass
class CmdletsConfig:
    """Main configuration class that aggregates all configuration sections."""

    azure: AzureConfig = field(default_factory=AzureConfig)
    vault_settings: VaultSettingsConfig = field(default_factory=VaultSettingsConfig)
    service_management: ServiceManagementConfig = field(
        default_factory=ServiceManagementConfig
    )
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_environment(
        cls,
        subscription_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        log_level: Optional[str] = None,
    ) -> "CmdletsConfig":
        """
        Create configuration from environment variables.

        Args:
            subscription_id: Optional subscription ID overriding AZURE_SUBSCRIPTION_ID
            tenant_id: Optional tenant ID overriding AZURE_TENANT_ID
            log_level: Optional log level overriding LOG_LEVEL

        Returns:
            CmdletsConfig: Configured instance
        """
        config = cls()
        if subscription_id:
            config.azure.subscription_id = subscription_id
        if tenant_id:
            config.azure.tenant_id = tenant_id
        if log_level:
            config.logging.level = log_level
        return config

    def validate_all(self) -> None:
        """Validate all configuration sections."""
        try:
            self.azure.validate()
            self.vault_settings.__post_init__()
            self.service_management.__post_init__()
            self.logging.__post_init__()
            logger.debug("Configuration validation successful")
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "azure": {
                "subscription_id": self.azure.subscription_id,
                "tenant_id": self.azure.tenant_id,
            },
            "vault_settings": {
                "output_directory": self.vault_settings.get_default_path(),
                "certificate_expiry_hours": self.vault_settings.certificate_expiry_hours,
            },
            "service_management": {
                "endpoint": self.service_management.endpoint,
                "api_version": self.service_management.api_version,
                "poll_interval": self.service_management.poll_interval,
                "operation_timeout": self.service_management.operation_timeout,
                "http_timeout": self.service_management.http_timeout,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
            },
        }


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup logging configuration based on config.
    """
    _set_azure_http_log_level(config.level.upper())

    import colorlog

    root_logger = logging.getLogger()
    root_logger.handlers.clear()  # Remove any existing handlers
    root_logger.setLevel(config.get_log_level())

    console_handler = colorlog.StreamHandler()
    console_handler.setFormatter(colorlog.ColoredFormatter(config.format))
    root_logger.addHandler(console_handler)

    # Add file handler if file output is configured
    if config.file_output:
        file_handler = logging.FileHandler(config.file_output)
        file_formatter = logging.Formatter(
            "%(asctime)s - %(levelname)s:%(name)s:%(message)s"
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    logger.debug(
        f"Logging configured: level={config.level}, file={config.file_output or 'console'}"
    )


def create_config_from_env(
    subscription_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    log_level: Optional[str] = None,
) -> CmdletsConfig:
    """
    Factory function to create and validate configuration from environment.

    Args:
        subscription_id: Optional subscription ID override
        tenant_id: Optional tenant ID override
        log_level: Optional log level override

    Returns:
        CmdletsConfig: Validated configuration instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    config = CmdletsConfig.from_environment(subscription_id, tenant_id, log_level)
    config.validate_all()
    return config
