"""Configuration management and environment loading."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .types import ConfigError


def _parse_headers(value: str) -> dict[str, str]:
    """Parse ``name=value,name=value`` into a header dict."""
    headers: dict[str, str] = {}
    for pair in value.split(","):
        if not pair.strip():
            continue
        name, sep, header_value = pair.partition("=")
        if not sep or not name.strip():
            raise ConfigError(f"Invalid STRATA_DEFAULT_HEADERS entry: {pair!r}")
        headers[name.strip()] = header_value.strip()
    return headers


@dataclass
class StrataConfig:
    """Main configuration for the Strata client."""

    # Prepended to every request URL
    base_url: str | None = None

    # Deadline for each call in seconds (None = no deadline)
    timeout: float | None = None

    # Headers applied beneath per-call headers
    default_headers: dict[str, str] = field(default_factory=dict)

    # Logging
    log_requests: bool = False
    log_level: str = "INFO"

    # Safety ceiling applied to every retry middleware registered via the client
    max_retry_attempts: int | None = None
    retry_warn_threshold: int | None = 10

    @classmethod
    def from_env(cls) -> "StrataConfig":
        """Create config from environment variables."""
        config = cls()

        # Read config from STRATA_ prefixed env vars
        if base_url := os.getenv("STRATA_BASE_URL"):
            config.base_url = base_url

        if timeout := os.getenv("STRATA_TIMEOUT"):
            try:
                config.timeout = float(timeout)
            except ValueError:
                raise ConfigError(f"Invalid STRATA_TIMEOUT: {timeout}")
            if config.timeout <= 0:
                raise ConfigError(f"Invalid STRATA_TIMEOUT: {timeout}")

        if headers := os.getenv("STRATA_DEFAULT_HEADERS"):
            config.default_headers = _parse_headers(headers)

        if log_level := os.getenv("STRATA_LOG_LEVEL"):
            config.log_level = log_level.upper()

        if os.getenv("STRATA_LOG_REQUESTS", "").lower() in ("1", "true", "yes"):
            config.log_requests = True

        if max_attempts := os.getenv("STRATA_MAX_RETRY_ATTEMPTS"):
            try:
                config.max_retry_attempts = int(max_attempts)
            except ValueError:
                raise ConfigError(f"Invalid STRATA_MAX_RETRY_ATTEMPTS: {max_attempts}")
            if config.max_retry_attempts < 1:
                raise ConfigError(f"Invalid STRATA_MAX_RETRY_ATTEMPTS: {max_attempts}")

        return config


def load_env_files(
    env_file: str | Path | None = None,
    env_files: list[str | Path] | None = None,
) -> None:
    """
    Load environment variables from .env files.

    Args:
        env_file: Single env file to load
        env_files: Multiple env files to load (later files override earlier)
    """
    files_to_load: list[Path] = []

    if env_files:
        files_to_load.extend(Path(f) for f in env_files)
    elif env_file:
        files_to_load.append(Path(env_file))
    else:
        # Default: try to load .env from current directory
        default_env = Path(".env")
        if default_env.exists():
            files_to_load.append(default_env)

    # Load files in order (later overrides earlier)
    for file_path in files_to_load:
        if file_path.exists():
            load_dotenv(file_path, override=True)
