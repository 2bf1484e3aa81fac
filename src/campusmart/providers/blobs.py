"""Binary object storage for listing, profile, lost-report and claim photos."""

import logging
import re
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from campusmart.domain.errors import RemoteWriteError, ValidationError

logger = logging.getLogger(__name__)

# Bucket names used by the application
LISTING_BUCKET = "items"
CLAIM_BUCKET = "claims"


class BlobStore(ABC):
    """Abstract blob store."""

    @abstractmethod
    def upload(self, data: bytes, filename: str, bucket: str, path: str) -> str:
        """Store bytes and return a public URL for them."""
        pass


def _safe_filename(filename: str) -> str:
    name = Path(filename).name
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name)
    if not name.strip("._"):
        raise ValidationError(f"Invalid file name '{filename}'")
    return name


class LocalBlobStore(BlobStore):
    """Blob store writing to a directory tree ``<root>/<bucket>/<path>/``.

    Objects are named ``<epoch ms>_<filename>`` so repeated uploads of the
    same file never collide.
    """

    def __init__(
        self,
        root_dir: str,
        base_url: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize local blob store.

        Args:
            root_dir: Directory holding the buckets
            base_url: Public URL prefix; defaults to file:// URLs
            clock: Time source used for object name prefixes
        """
        self.root_dir = Path(root_dir)
        self.base_url = base_url.rstrip("/") if base_url else None
        self.clock = clock

    def upload(self, data: bytes, filename: str, bucket: str, path: str) -> str:
        if not data:
            raise ValidationError("Cannot upload an empty file")
        object_name = f"{int(self.clock() * 1000)}_{_safe_filename(filename)}"
        relative = Path(bucket) / path.strip("/") / object_name
        target = self.root_dir / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise RemoteWriteError(f"Upload failed: {e}") from e

        logger.debug("Uploaded %s (%d bytes)", relative, len(data))
        if self.base_url:
            return f"{self.base_url}/{relative.as_posix()}"
        return target.resolve().as_uri()
