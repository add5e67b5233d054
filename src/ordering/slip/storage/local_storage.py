"""Local directory slip storage with HMAC-signed access URLs.

Files live under ``SLIP_STORAGE_DIR``. Access URLs point at ``SLIP_URL_BASE``
and carry an expiry timestamp plus a signature over ``path:expiry`` made with
``SLIP_URL_SECRET``; the serving side recomputes it with ``verify_signature``.
"""

import hashlib
import hmac
import os
import time
from pathlib import Path
from urllib.parse import quote, urlencode

from ordering.domain import logger
from ordering.slip.storage.port import SlipStorage, StorageResult


class LocalSlipStorage(SlipStorage):
    def __init__(self, root: str | None = None, url_base: str | None = None, secret: str | None = None):
        self.root = Path(root or os.environ.get("SLIP_STORAGE_DIR", "var/payment-slips")).resolve()
        self.url_base = (url_base or os.environ.get("SLIP_URL_BASE", "http://localhost:8000/slips")).rstrip("/")
        self.secret = (secret or os.environ.get("SLIP_URL_SECRET", "")).encode()

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise ValueError(f"Path escapes storage root: {path}")
        return target

    def upload(self, path: str, data: bytes, content_type: str) -> StorageResult:
        try:
            target = self._resolve(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "xb") as fh:
                fh.write(data)
        except (OSError, ValueError) as exc:
            logger.error("Slip upload failed", path=path, error=str(exc))
            return StorageResult(success=False, path=path, error=str(exc))
        return StorageResult(success=True, path=path)

    def sign(self, path: str, expires: int) -> str:
        return hmac.new(self.secret, f"{path}:{expires}".encode(), hashlib.sha256).hexdigest()

    def verify_signature(self, path: str, expires: int, signature: str, now: float | None = None) -> bool:
        if (now if now is not None else time.time()) > expires:
            return False
        return hmac.compare_digest(self.sign(path, expires), signature)

    def create_timed_access_url(self, path: str, ttl_seconds: int) -> StorageResult:
        if not self.secret:
            return StorageResult(success=False, path=path, error="SLIP_URL_SECRET is not configured")
        try:
            exists = self._resolve(path).is_file()
        except ValueError as exc:
            return StorageResult(success=False, path=path, error=str(exc))
        if not exists:
            return StorageResult(success=False, path=path, error="Object not found")

        expires = int(time.time()) + ttl_seconds
        query = urlencode({"expires": expires, "signature": self.sign(path, expires)})
        return StorageResult(success=True, path=path, url=f"{self.url_base}/{quote(path)}?{query}")
