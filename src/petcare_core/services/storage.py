"""
Pet photo storage.

The pet service only needs two operations from storage: save bytes under
a new key and delete a key. :class:`LocalPhotoStorage` keeps files on the
local filesystem under a configured directory.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class PhotoStorage(Protocol):
    """File storage collaborator for pet photos."""

    async def save(self, content: bytes, extension: str) -> str:
        """Store the bytes and return the new storage key."""
        ...

    async def delete(self, key: str) -> None:
        """Remove a stored file. Missing keys are not an error."""
        ...


class LocalPhotoStorage:
    """
    Stores photos as files named ``<uuid>.<extension>`` under ``base_dir``.

    Keys are relative paths such as ``pets/3f2c....jpg`` so they can be
    served from a static directory.
    """

    def __init__(self, base_dir: Union[str, Path], prefix: str = "pets"):
        self.base_dir = Path(base_dir)
        self.prefix = prefix

    def path_for(self, key: str) -> Path:
        """
        Absolute path of a key.

        Raises:
            ValueError: If the key points outside the storage directory
        """
        root = self.base_dir.resolve()
        path = (root / key).resolve()
        if root not in path.parents:
            raise ValueError(f"Storage key escapes the storage directory: {key}")
        return path

    async def save(self, content: bytes, extension: str) -> str:
        key = f"{self.prefix}/{uuid.uuid4().hex}.{extension.lower()}"
        path = self.path_for(key)
        await asyncio.to_thread(self._write, path, content)
        logger.info(f"Stored photo {key} ({len(content)} bytes)")
        return key

    async def delete(self, key: str) -> None:
        path = self.path_for(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.info(f"Deleted photo {key}")

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
