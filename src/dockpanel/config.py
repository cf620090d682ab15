"""Panel configuration using pydantic-settings.

Configuration hierarchy:
- DockerConfig: Container runtime connection settings
- NetworkConfig: Bridge/host address translation
- RegistryConfig: Snapshot refresh behavior
- LifecycleConfig: Lifecycle operation bounds
- LoggingConfig: Logging behavior
- ServerConfig: HTTP server settings
- PanelConfig: Main config aggregating all sub-configs

Environment variable prefix: DOCKPANEL_
Example: DOCKPANEL_REGISTRY_REFRESH_INTERVAL=5
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DockerConfig(BaseSettings):
    """Docker runtime configuration."""

    model_config = SettingsConfigDict(env_prefix="DOCKPANEL_DOCKER_")

    host: str = Field(
        default="unix:///var/run/docker.sock",
        description="Docker daemon socket or TCP address",
    )
    api_timeout: float = Field(default=30.0, description="Docker API call timeout (seconds)")
    stop_timeout: int = Field(
        default=10,
        description="Grace period before the daemon kills a stopping container (seconds)",
    )
    id_label: str = Field(
        default="dockpanel.id",
        description="Label holding the stable container identifier",
    )
    project_label: str = Field(
        default="com.docker.compose.project",
        description="Label used to group containers into projects",
    )


class NetworkConfig(BaseSettings):
    """Address translation between the bridge network and the host.

    Containers on the bridge (10.10.0.x) are exposed on per-container
    loopback addresses (127.0.0.x) so every container can reuse host ports.
    """

    model_config = SettingsConfigDict(env_prefix="DOCKPANEL_NETWORK_")

    bridge_prefix: str = Field(default="10.10.0", description="First three octets of the bridge subnet")
    host_prefix: str = Field(default="127.0.0", description="First three octets of host loopback addresses")
    default_address: str = Field(
        default="127.0.0.1",
        description="Fallback host address for containers without a usable bridge address",
    )


class RegistryConfig(BaseSettings):
    """Container registry refresh configuration."""

    model_config = SettingsConfigDict(env_prefix="DOCKPANEL_REGISTRY_")

    refresh_interval: float = Field(default=3.0, description="Seconds between registry refreshes")
    refresh_timeout: float = Field(default=10.0, description="Upper bound for one refresh (seconds)")
    default_project: str = Field(
        default="default",
        description="Project name for containers without a project label",
    )


class LifecycleConfig(BaseSettings):
    """Lifecycle coordinator configuration."""

    model_config = SettingsConfigDict(env_prefix="DOCKPANEL_LIFECYCLE_")

    operation_timeout: float = Field(
        default=60.0,
        description="Upper bound for one runtime mutation (seconds)",
    )
    clone_suffix: str = Field(default="-copy", description="Suffix appended to cloned container names")


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Supports both text and JSON formats for different environments:
    - text: Human-readable for local development
    - json: Structured logging for production (log aggregation)
    """

    model_config = SettingsConfigDict(env_prefix="DOCKPANEL_LOGGING_")

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="dockpanel", description="Service identifier in logs")


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="DOCKPANEL_SERVER_")

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=3000, description="Server port")
    api_key: str = Field(default="", description="API key for authentication")
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )


class PanelConfig(BaseSettings):
    """Main configuration aggregating all sub-configs.

    Environment variable prefix: DOCKPANEL_
    Sub-configs use their own prefixes (DOCKPANEL_DOCKER_, DOCKPANEL_NETWORK_, etc.)
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCKPANEL_",
        env_nested_delimiter="__",
    )

    docker: DockerConfig = Field(default_factory=DockerConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


@lru_cache
def get_config() -> PanelConfig:
    """Get cached panel configuration singleton."""
    return PanelConfig()
