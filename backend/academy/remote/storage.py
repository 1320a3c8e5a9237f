"""
Academy Backend: Object Storage Client
=======================================

What:  Upload, public URL and removal for objects in the hosted storage
       service (`/storage/v1`).
Who:   Used by the upload helpers behind the coach, event and gallery adapters.

All academy buckets are public: anyone may read an object through its
public URL, while writes go through row-level policies on the service.
"""

from typing import Any, List, Optional
from urllib.parse import quote, unquote

import httpx

from academy.remote.base import HeadersFactory, send


class BucketClient:
    """Operations on a single bucket."""

    def __init__(self, http: httpx.AsyncClient, storage_url: str, headers: HeadersFactory, bucket: str):
        self._http = http
        self._storage_url = storage_url
        self._headers = headers
        self.bucket = bucket

    def _object_url(self, path: str) -> str:
        return f"{self._storage_url}/object/{self.bucket}/{quote(path.lstrip('/'))}"

    async def upload(
        self,
        path: str,
        content: bytes,
        content_type: str,
        upsert: bool = False,
        cache_control: str = "3600",
    ) -> str:
        """
        Store `content` at `path` in this bucket.

        Returns:
            The object path within the bucket.
        Raises:
            BackendError: 409 when the path exists and `upsert` is False,
                          413 when the object exceeds the bucket limit.
        """
        headers = dict(self._headers())
        headers.update(
            {
                "Content-Type": content_type,
                "x-upsert": "true" if upsert else "false",
                "cache-control": f"max-age={cache_control}",
            }
        )
        await send(self._http, "POST", self._object_url(path), headers=headers, content=content)
        return path

    def get_public_url(self, path: str) -> str:
        """Public URL of an object; computed locally, the object need not exist."""
        return f"{self._storage_url}/object/public/{self.bucket}/{quote(path.lstrip('/'))}"

    def path_from_public_url(self, url: str) -> Optional[str]:
        """Inverse of `get_public_url`; None when the URL is not in this bucket."""
        marker = f"/object/public/{self.bucket}/"
        _, found, path = url.partition(marker)
        return unquote(path) if found and path else None

    async def remove(self, paths: List[str]) -> List[Any]:
        """Delete objects by path. Missing paths are ignored by the service."""
        response = await send(
            self._http,
            "DELETE",
            f"{self._storage_url}/object/{self.bucket}",
            headers=self._headers(),
            json={"prefixes": paths},
        )
        return response.json() if response.content else []


class StorageClient:
    def __init__(self, http: httpx.AsyncClient, base_url: str, headers: HeadersFactory):
        self._http = http
        self._url = f"{base_url.rstrip('/')}/storage/v1"
        self._headers = headers

    def bucket(self, name: str) -> BucketClient:
        return BucketClient(self._http, self._url, self._headers, name)
