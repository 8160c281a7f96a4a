"""Configuration for the textfile tools"""
import os
import pwd
from pathlib import Path
from typing import Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TEXTFILE_DIRECTORY = Path("/etc/prometheus/node_exporter_textfiles")


def effective_user() -> str:
    """Name of the account the process runs as"""
    try:
        return pwd.getpwuid(os.geteuid()).pw_name
    except KeyError:
        return str(os.geteuid())


class Config(BaseSettings):
    """Settings built once per invocation from command line overrides and the environment"""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Output
    textfile_directory: Path = Field(default=DEFAULT_TEXTFILE_DIRECTORY, description="node_exporter textfile directory")
    user: str = Field(default_factory=effective_user, description="Value of the implicit 'user' label")

    # Modes
    dry_run: bool = Field(default=False, description="Print what would be written instead of writing it")
    verbose: bool = Field(default=False, description="Echo the published document and filesystem actions")

    # Measurement
    measurement_backend: Literal["rusage", "gnu_time"] = Field(default="rusage", description="How promrun measures the child")
    gnu_time_command: Path = Field(default=Path("/usr/bin/time"), description="GNU time binary for the gnu_time backend")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="WARNING", description="Log level")
    log_format: Literal["console", "json"] = Field(default="console", description="Log renderer")
    log_file: Optional[Path] = Field(default=None, description="Optional log file in addition to stderr")

    @field_validator('user', mode='before')
    @classmethod
    def default_empty_user(cls, v):
        """An empty USER falls back to the effective account"""
        if not v:
            return effective_user()
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator('log_file')
    @classmethod
    def ensure_log_directory(cls, v):
        """Ensure the parent directory of the log file exists"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def effective_log_level(self) -> str:
        """Verbose mode always logs at DEBUG"""
        return "DEBUG" if self.verbose else self.log_level
