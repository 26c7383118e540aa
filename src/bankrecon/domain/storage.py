"""Durable storage for raw uploaded statement files."""

import logging
import os
import secrets
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class BlobStorage(Protocol):
    """Put/delete of raw bytes under a relative path."""

    def put(self, path: str, contents: bytes) -> str:
        ...

    def delete(self, path: str) -> None:
        ...


class LocalFileStorage:
    """Blob storage backed by a directory on the local filesystem."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def put(self, path: str, contents: bytes) -> str:
        """Write contents under root/path and return the relative path."""
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(contents)
        logger.debug("Stored %d bytes at %s", len(contents), target)
        return path

    def delete(self, path: str) -> None:
        (self.root / path).unlink(missing_ok=True)

    def read(self, path: str) -> bytes:
        return (self.root / path).read_bytes()


def statement_storage_path(account_id: int, extension: str, now: datetime) -> str:
    """Account-scoped path for a raw statement upload."""
    suffix = f".{extension.lower()}" if extension else ""
    return f"bank-statements/{account_id}/{now:%Y%m%d_%H%M%S}-{secrets.token_hex(4)}{suffix}"


def create_local_storage(storage_dir: Optional[str] = None) -> LocalFileStorage:
    """Create local storage.

    Args:
        storage_dir: Root directory. If None, checks BANKRECON_STORAGE_DIR
            environment variable, then defaults to ~/.bankrecon/storage
    """
    if storage_dir is None:
        storage_dir = os.environ.get("BANKRECON_STORAGE_DIR")

    if storage_dir is None:
        storage_dir = str(Path.home() / ".bankrecon" / "storage")

    return LocalFileStorage(storage_dir)
