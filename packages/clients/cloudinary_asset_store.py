"""Cloudinary implementation of the AssetStore port.

Talks to Cloudinary's upload REST API with httpx. Uploads and deletes are
signed with the API secret; transformed rendition URLs are derived locally
from the stored public id, so enrichment never re-uploads an asset.
"""

from __future__ import annotations

import hashlib
import logging
import time
from typing import Any, BinaryIO

import httpx

from packages.common.resilience import resilient_async_call

logger = logging.getLogger(__name__)

_API_BASE = "https://api.cloudinary.com/v1_1"
_DELIVERY_BASE = "https://res.cloudinary.com"


class AssetStoreError(Exception):
    """Raised when Cloudinary rejects an upload or delete."""


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """Return the SHA-1 request signature for ``params``.

    Parameters are sorted by name and joined as ``k=v`` pairs with ``&``;
    the API secret is appended before hashing.
    """
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()


class CloudinaryAssetStore:
    """Asset store for original images and their derived renditions."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        timeout: float = 30.0,
        max_attempts: int = 3,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not cloud_name:
            raise ValueError("cloudinary cloud_name is not configured")
        self.cloud_name = cloud_name
        self.api_key = api_key
        self._api_secret = api_secret
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._request = resilient_async_call(
            max_attempts=max_attempts, retry_on=(httpx.TransportError,)
        )(self._request_once)
        logger.info("Initialized CloudinaryAssetStore", extra={"cloud_name": cloud_name})

    async def upload(self, stream: BinaryIO, folder: str, public_id: str) -> str:
        params = {"folder": folder, "public_id": public_id, "timestamp": int(time.time())}
        content = stream.read()
        data = await self._call("upload", params, files={"file": (public_id, content)})
        url = data.get("secure_url")
        if not isinstance(url, str) or not url:
            raise AssetStoreError("Cloudinary upload returned no secure_url")
        return url

    async def delete(self, public_id: str) -> None:
        params = {"public_id": public_id, "timestamp": int(time.time())}
        data = await self._call("destroy", params)
        if data.get("result") not in ("ok", "not found"):
            raise AssetStoreError(f"Cloudinary destroy failed: {data.get('result')}")

    def derive_url(self, public_id: str, transformation: str) -> str:
        public_id = public_id.strip("/")
        if not transformation:
            return f"{_DELIVERY_BASE}/{self.cloud_name}/image/upload/{public_id}"
        return f"{_DELIVERY_BASE}/{self.cloud_name}/image/upload/{transformation}/{public_id}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(
        self, action: str, params: dict[str, Any], files: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        try:
            return await self._request(action, params, files)
        except httpx.HTTPStatusError as e:
            raise AssetStoreError(f"Cloudinary {action} failed: {e}") from e

    async def _request_once(
        self, action: str, params: dict[str, Any], files: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        body = {
            **params,
            "api_key": self.api_key,
            "signature": sign_params(params, self._api_secret),
        }
        response = await self._client.post(
            f"{_API_BASE}/{self.cloud_name}/image/{action}",
            data={k: str(v) for k, v in body.items()},
            files=files,
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise AssetStoreError(f"Cloudinary {action} returned {type(data).__name__}")
        return data


__all__ = ["AssetStoreError", "CloudinaryAssetStore", "sign_params"]
