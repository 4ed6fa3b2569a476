"""S3-compatible object storage browsing (AWS S3, MinIO, LocalStack)."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from showcase.config import ShowcaseSettings
from showcase.exceptions import UpstreamServiceError
from showcase.types import ObjectEntry

_logger = logging.getLogger(__name__)


class ObjectStore:
    """Read-only view over one bucket. Calls are blocking."""

    def __init__(self, bucket: str, client: Any) -> None:
        self.bucket = bucket
        self.client = client

    @classmethod
    def from_settings(cls, config: ShowcaseSettings) -> ObjectStore:
        client_kwargs: dict[str, Any] = {
            "service_name": "s3",
            "region_name": config.s3_region,
            "config": Config(signature_version="s3v4"),
        }
        if config.s3_endpoint:
            client_kwargs["endpoint_url"] = config.s3_endpoint
        if config.s3_access_key_id and config.s3_secret_access_key:
            client_kwargs["aws_access_key_id"] = config.s3_access_key_id
            client_kwargs["aws_secret_access_key"] = config.s3_secret_access_key

        _logger.info(
            "Object store: bucket=%s endpoint=%s region=%s",
            config.s3_bucket, config.s3_endpoint or "aws", config.s3_region,
        )
        return cls(config.s3_bucket, boto3.client(**client_kwargs))

    def list_dir(self, directory: str) -> list[ObjectEntry]:
        """Immediate children of `directory`: sub-prefixes as Dir, objects as File."""
        prefix = directory.strip("/")
        prefix = f"{prefix}/" if prefix else ""
        entries: list[ObjectEntry] = []

        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix, Delimiter="/"):
                for common in page.get("CommonPrefixes", []):
                    name = common["Prefix"][len(prefix):].rstrip("/")
                    entries.append(ObjectEntry(name=name, type="Dir"))
                for obj in page.get("Contents", []):
                    name = obj["Key"][len(prefix):]
                    if not name:
                        continue  # the directory marker itself
                    modified = obj.get("LastModified")
                    entries.append(ObjectEntry(
                        name=name,
                        type="File",
                        size=obj.get("Size", 0),
                        mtime=modified.isoformat() if modified else None,
                    ))
        except (ClientError, BotoCoreError) as e:
            raise UpstreamServiceError(f"Listing s3://{self.bucket}/{prefix} failed: {e}") from e

        for entry in entries:
            _logger.debug(
                "%s: %s Size: %s Last Modified Time: %s",
                entry.type, entry.name, entry.size, entry.mtime,
            )
        return entries

    def __repr__(self) -> str:
        return f"ObjectStore(bucket={self.bucket!r})"
