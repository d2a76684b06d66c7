"""Almacenamiento de objetos S3 (boto3).

Por qué un adaptador:
- El Core solo conoce `ObjectStorage` (put/get/list); aquí se traducen los
  errores de botocore a `StorageError`.
- Credenciales y región salen de la cadena estándar de boto3 (env vars,
  ~/.aws, rol de instancia); bucket y endpoint de `AppSettings`.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.config import AppSettings
from core.domain.errors import StorageError
from core.interfaces.storage import ObjectStorage

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/x-tar"


def build_s3_client(settings: AppSettings) -> Any:
    return boto3.client(
        "s3",
        region_name=settings.storage_region,
        endpoint_url=settings.storage_endpoint_url,
    )


class S3ObjectStorage(ObjectStorage):
    """`ObjectStorage` backed by one S3 bucket."""

    def __init__(self, settings: AppSettings | None = None, *, client: Any | None = None) -> None:
        self._settings = settings or AppSettings()
        self._bucket = self._settings.storage_bucket
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                self._client = build_s3_client(self._settings)
            except BotoCoreError as exc:
                raise StorageError(f"unable to load SDK config: {exc}") from exc
        return self._client

    def put(self, key: str, data: bytes) -> None:
        logger.debug("storage: put s3://%s/%s (%d bytes)", self._bucket, key, len(data))
        try:
            self.client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"error uploading to S3: {exc}", key=key) from exc

    def get(self, key: str) -> bytes:
        logger.debug("storage: get s3://%s/%s", self._bucket, key)
        try:
            response = self.client.get_object(Bucket=self._bucket, Key=key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"error downloading from S3: {exc}", key=key) from exc

    def list(self, prefix: str = "") -> list[str]:
        logger.debug("storage: list s3://%s/%s", self._bucket, prefix)
        keys: list[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"error listing objects: {exc}") from exc
        return keys
