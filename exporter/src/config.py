"""
Bridge configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Every option has a default matching the inverter's stock setup (status
stream pushed to port 2901, scrape endpoint on 9550).

CHANGELOG:
- 2026-10-19: Initial creation (STORY-107)

TODO:
- None
"""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ExporterSettings(BaseSettings):
    """Bridge configuration.

    Attributes:
        listen_host: Address the status-stream listener binds to.
        data_port: TCP port the inverter connects to (default 2901).
        metrics_host: Address the Prometheus endpoint binds to.
        metrics_port: TCP port of the Prometheus endpoint (default 9550).
        reconnect: Accept a new inverter connection after the current one
            ends.  Off by default: the first connection ending stops the
            process.
        max_frame_bytes: Read buffer limit; a frame longer than this without
            a closing brace ends the connection.
        health_path: JSON health file path.  Empty disables the file.
        log_level: Root log level name.
    """

    listen_host: str = "0.0.0.0"
    data_port: int = 2901
    metrics_host: str = "0.0.0.0"
    metrics_port: int = 9550
    reconnect: bool = False
    max_frame_bytes: int = 65536
    health_path: str = ""
    log_level: str = "INFO"

    @field_validator("data_port", "metrics_port")
    @classmethod
    def port_must_be_valid(cls, v: int) -> int:
        """Validate TCP ports are in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("DATA_PORT and METRICS_PORT must be between 1 and 65535")
        return v

    @field_validator("max_frame_bytes")
    @classmethod
    def max_frame_bytes_must_fit_a_frame(cls, v: int) -> int:
        """Validate the buffer can hold at least a minimal status frame."""
        if v < 256:
            raise ValueError("MAX_FRAME_BYTES must be >= 256")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Normalise and validate the log level name."""
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def _ports_must_differ(self) -> "ExporterSettings":
        """Reject a metrics port that collides with the data port."""
        if self.data_port == self.metrics_port:
            raise ValueError("METRICS_PORT must differ from DATA_PORT")
        return self

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
