"""
Blob persistence for uploaded files
Raw bytes live in a single directory, one file per storage name
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class BlobError(OSError):
    pass


class BlobNotFoundError(BlobError):
    pass


class BlobStore:
    def __init__(self, root):
        self.root = Path(root).resolve()
        self.ensure_root()

    def ensure_root(self):
        """Ensure the uploads directory exists"""
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, name):
        """Absolute path for a storage name; names escaping the root are rejected"""
        try:
            path = (self.root / name).resolve()
        except (OSError, ValueError) as e:
            raise BlobError(f"Invalid storage name: {name!r}") from e
        if path.parent != self.root:
            raise BlobError(f"Invalid storage name: {name!r}")
        return path

    def exists(self, name):
        try:
            return self.path_for(name).is_file()
        except BlobError:
            return False

    def write_blob(self, name, data):
        path = self.path_for(name)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise BlobError(f"Could not write blob {name}: {e}") from e
        logger.info(f"Wrote blob {name} ({len(data)} bytes)")

    def open_blob(self, name):
        """
        Open a blob for streaming. Returns ``(stream, size)`` where size is
        taken from the file before any bytes are read.
        """
        path = self.path_for(name)
        try:
            size = path.stat().st_size
            stream = path.open('rb')
        except FileNotFoundError as e:
            raise BlobNotFoundError(f"Blob {name} is missing") from e
        except OSError as e:
            raise BlobError(f"Could not open blob {name}: {e}") from e
        return stream, size

    def delete_blob(self, name):
        path = self.path_for(name)
        if not path.exists():
            return
        try:
            path.unlink()
        except OSError as e:
            raise BlobError(f"Could not delete blob {name}: {e}") from e
        logger.info(f"Deleted blob {name}")
