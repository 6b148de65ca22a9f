"""Local disk storage for hosted files."""
import logging
import re
import secrets
import time
from pathlib import Path
from typing import BinaryIO, Tuple, Union
from uuid import UUID

from src.core.errors import AppError, FileTooLargeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class StorageError(AppError):
    """Raised when the disk cannot be written or cleaned up."""
    status_code = 500
    code = "storage_error"


class LocalStorage:
    """Writes uploads under `<root>/<owner_id>/<stored_name>`."""

    def __init__(self, root: Union[str, Path], public_base_url: str, api_prefix: str = "/api/v1"):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")
        self.api_prefix = api_prefix
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Local storage initialized at: {self.root.resolve()}")

    @staticmethod
    def generate_stored_name(filename: str) -> str:
        """
        Generate a unique, filesystem-safe name for an upload.

        Args:
            filename: Original filename from the client

        Returns:
            `<millis>-<random>-<sanitised name>`
        """
        safe_name = re.sub(r"[^a-zA-Z0-9.]", "_", Path(filename).name) or "file"
        return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}-{safe_name}"

    def path_for(self, owner_id: UUID, stored_name: str) -> Path:
        return self.root / str(owner_id) / stored_name

    def public_url(self, file_id: UUID) -> str:
        return f"{self.public_base_url}{self.api_prefix}/files/{file_id}/download"

    def save(self, owner_id: UUID, filename: str, stream: BinaryIO, max_bytes: int) -> Tuple[str, Path, int]:
        """
        Copy an upload stream to disk.

        Args:
            owner_id: Account the file belongs to
            filename: Original filename
            stream: Readable binary stream
            max_bytes: Hard ceiling for a single upload

        Returns:
            Tuple of (stored_name, path, size in bytes)

        Raises:
            FileTooLargeError: If the stream is longer than `max_bytes`
            StorageError: If writing fails
        """
        stored_name = self.generate_stored_name(filename)
        path = self.path_for(owner_id, stored_name)
        size = 0
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        raise FileTooLargeError(f"File too large. Max upload size: {max_bytes // CHUNK_SIZE}MB")
                    out.write(chunk)
        except FileTooLargeError:
            self.delete(path)
            raise
        except OSError as e:
            logger.error(f"Error writing upload {path}: {e}")
            self.delete(path)
            raise StorageError(f"Failed to store file: {e}")

        logger.debug(f"Stored upload: {path} ({size} bytes)")
        return stored_name, path, size

    def delete(self, path: Union[str, Path]) -> bool:
        """
        Remove a stored file.

        Returns:
            True if a file was removed, False if it did not exist

        Raises:
            StorageError: If the file exists but cannot be removed
        """
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Error deleting file {path}: {e}")
            raise StorageError(f"Failed to delete file: {e}")
        logger.info(f"Deleted file: {path}")
        return True

    def exists(self, path: Union[str, Path]) -> bool:
        return Path(path).is_file()
