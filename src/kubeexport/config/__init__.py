"""Application configuration for kubeexport.

This module provides the tool-wide settings (kubectl invocation and observability)
using Pydantic models, loaded from the packaged defaults.yaml.
"""

from pathlib import Path
from typing import Literal, Self

import yaml
from pydantic import BaseModel, Field, field_validator


class ObservabilityConfig(BaseModel):
    """Observability configuration for logging and tracing.

    Attributes:
        enabled: Whether OTLP export of logs and traces is enabled
        service_name: Service name for telemetry data
        environment: Environment name (e.g., production, staging, development)
        log_level: Logging level
        otlp_endpoint: Base URL of the OTLP/HTTP collector
        otlp_headers: Extra headers sent with every OTLP request
    """

    enabled: bool = Field(
        default=False,
        description="Enable OTLP export of logs and traces",
    )
    service_name: str = Field(
        default="kubeexport",
        description="Service name for telemetry",
    )
    environment: str = Field(
        default="development",
        description="Environment name",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    otlp_endpoint: str = Field(
        default="http://localhost:4318",
        description="OTLP/HTTP collector endpoint",
    )
    otlp_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers for OTLP requests (e.g. API keys)",
    )


class KubectlConfig(BaseModel):
    """Configuration for invoking kubectl.

    Attributes:
        binary: kubectl executable name or path
        timeout: Per-invocation timeout in seconds
    """

    binary: str = Field(
        default="kubectl",
        min_length=1,
        description="kubectl executable",
    )
    timeout: int = Field(
        default=60,
        gt=0,
        description="Per-invocation timeout in seconds",
    )

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is within reasonable bounds."""
        if v > 300:  # 5 minutes max
            msg = "Timeout cannot exceed 300 seconds"
            raise ValueError(msg)
        return v


class AppConfig(BaseModel):
    """Default configuration settings for kubeexport.

    Attributes:
        kubectl: kubectl invocation configuration
        observability: Observability configuration
    """

    model_config = {"extra": "ignore"}

    kubectl: KubectlConfig = Field(
        default_factory=KubectlConfig,
        description="kubectl configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )

    @classmethod
    def from_yaml(cls, path: Path) -> Self:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            AppConfig instance with validated settings

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the YAML is invalid or validation fails
        """
        if not path.exists():
            msg = f"Configuration file not found: {path}"
            raise FileNotFoundError(msg)

        with path.open("r") as f:
            data = yaml.safe_load(f)

        return cls(**(data or {}))

    @classmethod
    def load_defaults(cls) -> Self:
        """Load the default configuration from defaults.yaml."""
        defaults_path = Path(__file__).parent / "defaults.yaml"
        return cls.from_yaml(defaults_path)


default_config = AppConfig.load_defaults()

__all__ = ["AppConfig", "KubectlConfig", "ObservabilityConfig", "default_config"]
