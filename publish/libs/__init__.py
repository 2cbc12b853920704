"""Shared library helpers."""

from publish.libs.publish_client import (
    PublishAPIError,
    PublishClient,
    PublishClientError,
)

__all__ = [
    "PublishAPIError",
    "PublishClient",
    "PublishClientError",
]
