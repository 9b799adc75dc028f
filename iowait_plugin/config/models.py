"""Config models.

Settings are environment driven (with ``.env`` support) through
``pydantic-settings``. Command-line flags in :mod:`iowait_plugin.server.cli`
override individual values after loading.
"""

from __future__ import annotations

import socket
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

# The socket lives in its own sub-directory so its permissions can be locked down
DEFAULT_SOCKET_PATH = "/var/run/scope/plugins/iowait/iowait.sock"


class PluginSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: LogLevel
        Logging level name, case-insensitive (e.g., "DEBUG", "info").
        Defaults to "INFO"; unknown names fail at load time.
    socket_path: str
        Filesystem path of the Unix socket Scope probes connect to.
    hostname: Optional[str]
        Host identity reported to Scope. Defaults to the machine hostname.
    iostat_command: List[str]
        Command producing CPU utilisation in ``iostat -c`` format.
    cortex_url: Optional[str]
        Optional Cortex/Prometheus base URL queried once at startup.
    cortex_query: str
        PromQL expression for the startup storage probe.
    cortex_timeout_seconds: float
        HTTP timeout for the startup storage probe.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="IOWAIT_PLUGIN_")

    log_level: LogLevel = Field("INFO")
    socket_path: str = Field(DEFAULT_SOCKET_PATH)
    hostname: Optional[str] = Field(
        None,
        description="Host identity override (defaults to socket.gethostname())",
    )
    iostat_command: List[str] = Field(
        default_factory=lambda: ["iostat", "-c"],
        min_length=1,
        description="Command and arguments for the CPU utilisation sampler",
    )
    cortex_url: Optional[str] = Field(
        None,
        description="Cortex/Prometheus base URL for the startup storage probe",
    )
    cortex_query: str = Field(
        "OpenEBS_write_iops",
        description="PromQL query issued by the startup storage probe",
    )
    cortex_timeout_seconds: float = Field(10.0, gt=0)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    def host_id(self) -> str:
        """Return the configured host identity or the machine hostname."""
        return self.hostname or socket.gethostname()
