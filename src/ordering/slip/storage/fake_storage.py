"""Fake slip storage: keeps uploaded files in memory for testing."""

from datetime import UTC, datetime, timedelta

from ordering.slip.storage.port import SlipStorage, StorageResult


class FakeSlipStorage(SlipStorage):
    """Storage adapter that records objects in memory for test assertions."""

    def __init__(self):
        self.objects: dict[str, dict] = {}
        self.fail_uploads = False
        self.fail_urls = False
        self.failure_reason = "Storage unavailable"

    def configure(self, fail_uploads: bool = False, fail_urls: bool = False, failure_reason: str = "Storage unavailable"):
        """Configure the fake adapter behavior for testing."""
        self.fail_uploads = fail_uploads
        self.fail_urls = fail_urls
        self.failure_reason = failure_reason

    def upload(self, path: str, data: bytes, content_type: str) -> StorageResult:
        if self.fail_uploads:
            return StorageResult(success=False, path=path, error=self.failure_reason)
        if path in self.objects:
            return StorageResult(success=False, path=path, error="Object already exists")

        self.objects[path] = {"data": data, "content_type": content_type}
        return StorageResult(success=True, path=path)

    def create_timed_access_url(self, path: str, ttl_seconds: int) -> StorageResult:
        if self.fail_urls:
            return StorageResult(success=False, path=path, error=self.failure_reason)
        if path not in self.objects:
            return StorageResult(success=False, path=path, error="Object not found")

        expires = int((datetime.now(UTC) + timedelta(seconds=ttl_seconds)).timestamp())
        return StorageResult(success=True, path=path, url=f"memory://payment-slips/{path}?expires={expires}")

    def reset(self):
        self.objects.clear()
        self.fail_uploads = False
        self.fail_urls = False
        self.failure_reason = "Storage unavailable"
