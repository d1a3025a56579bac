"""Named-bucket blob storage for profile photos, credentials and project files."""

import logging
import time
from pathlib import Path

from ..errors import BackendError, NotFoundError

logger = logging.getLogger(__name__)

BUCKETS = frozenset({"profile-photos", "credentials", "project-files"})


class BlobStorage:
    """Stores blobs under ``<root>/<bucket>/<path>``."""

    def __init__(self, root: Path):
        """Initialize storage rooted at a directory."""
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _bucket_dir(self, bucket: str) -> Path:
        if bucket not in BUCKETS:
            raise BackendError(f"Unknown bucket: {bucket}")
        return (self.root / bucket).resolve()

    def _resolve(self, bucket: str, path: str) -> Path:
        bucket_dir = self._bucket_dir(bucket)
        target = (bucket_dir / path).resolve()
        if bucket_dir not in target.parents:
            raise BackendError(f"Invalid object path: {path}")
        return target

    def timestamped_path(self, bucket: str, prefix: str, filename: str) -> str:
        """Free ``<prefix>/<epoch millis>.<ext>`` object path for a new upload."""
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        millis = int(time.time() * 1000)
        while self._resolve(bucket, f"{prefix}/{millis}.{ext}").exists():
            millis += 1
        return f"{prefix}/{millis}.{ext}"

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        """Upload a blob and return its object path."""
        target = self._resolve(bucket, path)
        if target.exists():
            raise BackendError(f"Object already exists: {bucket}/{path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error("Upload to %s/%s failed: %s", bucket, path, e)
            raise BackendError(f"Upload failed: {bucket}/{path}", cause=e) from e

        logger.info("Uploaded %d bytes to %s/%s", len(data), bucket, path)
        return path

    def download(self, bucket: str, path: str) -> bytes:
        """Read a blob."""
        target = self._resolve(bucket, path)
        if not target.exists():
            raise NotFoundError(f"Object not found: {bucket}/{path}")
        return target.read_bytes()

    def remove(self, bucket: str, path: str) -> bool:
        """Delete a blob. Returns False if it did not exist."""
        target = self._resolve(bucket, path)
        if not target.exists():
            return False
        target.unlink()
        return True

    def list(self, bucket: str, prefix: str = "") -> list[str]:
        """List object paths in a bucket under a prefix."""
        bucket_dir = self._bucket_dir(bucket)
        base = bucket_dir / prefix if prefix else bucket_dir
        if not base.exists():
            return []
        return sorted(
            str(p.relative_to(bucket_dir)) for p in base.rglob("*") if p.is_file()
        )
