"""Object storage used for deferred photo uploads."""

import logging

import requests

logger = logging.getLogger("fleetwatch.clients.storage")


class ObjectStorage:
    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        """Store ``data`` at ``bucket/path`` (overwriting) and return the path."""
        raise NotImplementedError


class SupabaseStorage(ObjectStorage):
    """The platform's storage REST endpoint (``/storage/v1/object``)."""

    def __init__(self, url: str, key: str, timeout: float = 30, session=None):
        self.base_url = url.rstrip("/") + "/storage/v1/object"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"apikey": key, "Authorization": f"Bearer {key}"})

    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        resp = self.session.post(
            f"{self.base_url}/{bucket}/{path.lstrip('/')}",
            data=data,
            headers={"Content-Type": content_type, "x-upsert": "true"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        logger.debug("Uploaded %d bytes to %s/%s", len(data), bucket, path)
        return path
