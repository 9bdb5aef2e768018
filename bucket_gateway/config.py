"""Process configuration, read once from the environment at startup."""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_PORT = 8080


class ConfigError(RuntimeError):
    """A required setting is missing or malformed."""


@dataclass(frozen=True)
class GatewayConfig:
    bucket: str
    audience: str
    port: int = DEFAULT_PORT
    cache_control: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GatewayConfig":
        env = os.environ if environ is None else environ

        bucket = env.get("GCS_BUCKET")
        if not bucket:
            raise ConfigError("GCS_BUCKET environment variable not set")

        audience = env.get("IAP_AUDIENCE")
        if not audience:
            raise ConfigError("IAP_AUDIENCE environment variable not set")

        port = env.get("PORT") or str(DEFAULT_PORT)
        try:
            port_number = int(port)
        except ValueError as ex:
            raise ConfigError(f"PORT must be an integer, got {port!r}") from ex

        log_level = env.get("LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"LOG_LEVEL must be a logging level name, got {log_level!r}")

        return cls(
            bucket=bucket,
            audience=audience,
            port=port_number,
            cache_control=env.get("CACHE_CONTROL") or None,
            log_level=log_level,
        )
