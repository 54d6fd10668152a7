"""Shared boto3 client construction for the AWS-backed channels."""

from __future__ import annotations

import logging
from typing import Any

import boto3

from app.config import Settings

logger = logging.getLogger(__name__)


def create_client(service_name: str, settings: Settings) -> Any:
    """Return a boto3 client for ``service_name`` in the configured region.

    Explicit credentials are passed only when both parts are configured so
    that the default boto3 credential chain applies otherwise.
    """

    options: dict[str, Any] = {"region_name": settings.aws_region}
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        options["aws_access_key_id"] = settings.aws_access_key_id
        options["aws_secret_access_key"] = settings.aws_secret_access_key
    client = boto3.client(service_name, **options)
    logger.info("%s client initialized for region: %s", service_name.upper(), settings.aws_region)
    return client


__all__ = ["create_client"]
