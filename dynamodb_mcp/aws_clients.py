"""aws_clients.py — Construction of the DynamoDB client shared by all tools.

The client is built once in ``server.main()`` and handed to the dispatcher;
nothing here caches it at module level, so tests can pass a fake instead.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

import boto3
from botocore.config import Config

from dynamodb_mcp.config import Settings

__all__ = ["build_ddb_client", "client_kwargs"]

logger = logging.getLogger(__name__)

# One attempt per call: failures go straight back to the caller.
_CLIENT_CONFIG = Config(retries={"total_max_attempts": 1, "mode": "standard"})


def client_kwargs(settings: Settings) -> Dict[str, Any]:
    """Keyword arguments for ``boto3.client("dynamodb", ...)``."""
    kwargs: Dict[str, Any] = {"config": _CLIENT_CONFIG}
    if settings.region:
        kwargs["region_name"] = settings.region
    if settings.access_key_id:
        kwargs["aws_access_key_id"] = settings.access_key_id
    if settings.secret_access_key:
        kwargs["aws_secret_access_key"] = settings.secret_access_key
    if settings.session_token:
        kwargs["aws_session_token"] = settings.session_token
    if settings.endpoint_url:
        kwargs["endpoint_url"] = settings.endpoint_url
    return kwargs


def build_ddb_client(settings: Settings):
    """Create the low-level DynamoDB client from settings."""
    kwargs = client_kwargs(settings)
    logger.debug(
        "creating dynamodb client region=%s endpoint=%s session_token=%s",
        settings.region,
        settings.endpoint_url or "default",
        "yes" if settings.session_token else "no",
    )
    return boto3.client("dynamodb", **kwargs)
