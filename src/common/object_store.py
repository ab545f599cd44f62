"""Object-storage transport used by the S3-style module registry.

The resolver and the descriptor loader only need two operations: a prefix
listing that pages with a continuation token, and fetching an object's bytes.
``MinioObjectStorage`` implements them on top of the ``minio`` client, which
speaks the S3 API against AWS and any compatible endpoint.
"""
from __future__ import annotations

import itertools
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from minio import Minio
from minio.error import MinioException
from urllib3.exceptions import HTTPError

from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "s3.amazonaws.com"


class ObjectStoreError(Exception):
    """Raised when the object store cannot list or fetch an object.

    Wraps minio errors as well as transport failures (unreachable endpoint,
    reset connection) surfaced by urllib3.
    """


@dataclass
class ListPage:
    """One page of a prefix listing."""

    keys: List[str] = field(default_factory=list)
    next_token: Optional[str] = None

    @property
    def is_truncated(self) -> bool:
        return self.next_token is not None


class ObjectStorage:
    """Interface of the object-store transport."""

    def list_page(
        self, bucket: str, prefix: str, page_size: int, continuation_token: Optional[str] = None
    ) -> ListPage:
        raise NotImplementedError

    def get_object(self, bucket: str, key: str) -> bytes:
        raise NotImplementedError

    def list_keys(self, bucket: str, prefix: str, page_size: int) -> List[str]:
        """Accumulate every key under ``prefix`` across continuation tokens."""
        keys: List[str] = []
        token: Optional[str] = None
        while True:
            page = self.list_page(bucket, prefix, page_size, token)
            keys.extend(page.keys)
            if not page.is_truncated:
                return keys
            token = page.next_token


class MinioObjectStorage(ObjectStorage):
    """``ObjectStorage`` backed by a ``minio.Minio`` client.

    The continuation token is the last key of the previous page, passed back
    to ``list_objects`` as ``start_after``.
    """

    def __init__(self, client: Minio):
        self._client = client

    @classmethod
    def from_env(cls, endpoint: Optional[str] = None, region: Optional[str] = None) -> "MinioObjectStorage":
        """Build a client from the endpoint and the ambient AWS/MinIO credentials."""
        target = endpoint or os.getenv("APPGEN_S3_ENDPOINT") or DEFAULT_ENDPOINT
        secure = True
        if target.startswith("http://"):
            target, secure = target[len("http://"):], False
        elif target.startswith("https://"):
            target = target[len("https://"):]
        client = Minio(
            target.rstrip("/"),
            access_key=os.getenv("AWS_ACCESS_KEY_ID") or os.getenv("MINIO_ACCESS_KEY"),
            secret_key=os.getenv("AWS_SECRET_ACCESS_KEY") or os.getenv("MINIO_SECRET_KEY"),
            session_token=os.getenv("AWS_SESSION_TOKEN"),
            secure=secure,
            region=region or os.getenv("AWS_REGION"),
        )
        return cls(client)

    def list_page(
        self, bucket: str, prefix: str, page_size: int, continuation_token: Optional[str] = None
    ) -> ListPage:
        try:
            objects = self._client.list_objects(
                bucket, prefix=prefix, recursive=True, start_after=continuation_token
            )
            batch = [obj.object_name for obj in itertools.islice(objects, page_size + 1)]
        except (MinioException, HTTPError, OSError) as exc:
            raise ObjectStoreError(f"Failed to list {bucket}/{prefix}: {exc}") from exc

        keys = batch[:page_size]
        next_token = keys[-1] if len(batch) > page_size and keys else None
        if is_debug_enabled(logger):
            logger.debug(
                "Object store page listed",
                extra=extra_context(
                    event="s3_list",
                    component="object_store",
                    target=f"{bucket}/{prefix}",
                    count=len(keys),
                    outcome="truncated" if next_token else "complete",
                ),
            )
        return ListPage(keys=keys, next_token=next_token)

    def get_object(self, bucket: str, key: str) -> bytes:
        response = None
        try:
            response = self._client.get_object(bucket, key)
            return response.read()
        except (MinioException, HTTPError, OSError) as exc:
            raise ObjectStoreError(f"Failed to read {bucket}/{key}: {exc}") from exc
        finally:
            if response is not None:
                response.close()
                response.release_conn()
