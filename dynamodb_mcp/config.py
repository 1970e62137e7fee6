"""config.py — Environment-derived settings, server constants, logging setup."""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

from dynamodb_mcp import __version__

__all__ = [
    "DEFAULT_LSI_CAPACITY",
    "SERVER_NAME",
    "SERVER_VERSION",
    "Settings",
    "configure_logging",
    "load_settings",
]

SERVER_NAME = "dynamodb-mcp-server"
SERVER_VERSION = __version__

# Read/write units used by create_lsi when the caller leaves them out.
DEFAULT_LSI_CAPACITY = 5

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = str(environ.get(name, "") or "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup.

    Credentials are not checked here; a missing key only surfaces when boto3
    makes its first request.
    """

    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    endpoint_url: Optional[str] = None
    log_level: str = "INFO"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        region=_env(env, "AWS_REGION"),
        access_key_id=_env(env, "AWS_ACCESS_KEY_ID"),
        secret_access_key=_env(env, "AWS_SECRET_ACCESS_KEY"),
        session_token=_env(env, "AWS_SESSION_TOKEN"),
        endpoint_url=_env(env, "DYNAMODB_ENDPOINT_URL"),
        log_level=(_env(env, "DYNAMODB_MCP_LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    # stdout carries the MCP protocol; everything else goes to stderr.
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format=_LOG_FORMAT,
    )
