"""
Local filesystem file store: directories act as source and archive locations
"""

import asyncio
import logging
import mimetypes
import os
import shutil
from pathlib import Path
from typing import List

from core.exceptions import FileStoreError
from ingestion.stores.base import FileHandle

logger = logging.getLogger(__name__)


class LocalFileStore:
    """
    File store over a directory tree.

    Locations are directory paths relative to ``root`` (absolute paths are
    used as given). A file handle's id is its absolute path. Listing is
    sorted by file name so runs are reproducible. Moving never overwrites:
    a file whose name is already archived is stored as ``name (1).csv``.
    """

    def __init__(self, root: str = "."):
        self.root = Path(root)

    def _location_path(self, location: str) -> Path:
        path = Path(location)
        if not path.is_absolute():
            path = self.root / path
        return path

    async def list_files(self, location: str) -> List[FileHandle]:
        directory = self._location_path(location)
        try:
            entries = await asyncio.to_thread(self._scan, directory)
        except OSError as e:
            raise FileStoreError(
                "Failed to list location",
                context={"operation": "list", "location": str(directory)},
                original_exception=e
            )
        logger.debug(f"Listed {len(entries)} files in {directory}")
        return entries

    @staticmethod
    def _scan(directory: Path) -> List[FileHandle]:
        handles = []
        with os.scandir(directory) as it:
            for entry in it:
                if not entry.is_file():
                    continue
                content_type, _ = mimetypes.guess_type(entry.name)
                handles.append(
                    FileHandle(
                        id=str(Path(entry.path).absolute()),
                        name=entry.name,
                        content_type=content_type,
                    )
                )
        return sorted(handles, key=lambda h: h.name)

    async def read_content(self, handle: FileHandle) -> bytes:
        try:
            return await asyncio.to_thread(Path(handle.id).read_bytes)
        except OSError as e:
            raise FileStoreError(
                "Failed to read file",
                context={"operation": "read", "file_name": handle.name, "file_id": handle.id},
                original_exception=e
            )

    async def move(self, handle: FileHandle, source: str, destination: str) -> None:
        src = Path(handle.id)
        if src.parent.resolve() != self._location_path(source).resolve():
            raise FileStoreError(
                "File is not in the source location",
                context={"operation": "move", "file_name": handle.name, "location": source}
            )

        target_dir = self._location_path(destination)
        try:
            target = await asyncio.to_thread(self._move, src, target_dir)
        except OSError as e:
            raise FileStoreError(
                "Failed to move file",
                context={
                    "operation": "move",
                    "file_name": handle.name,
                    "location": source,
                    "destination": str(target_dir),
                },
                original_exception=e
            )
        logger.debug(f"Moved {handle.name} to {target}")

    @staticmethod
    def _move(src: Path, target_dir: Path) -> Path:
        """Move ``src`` into ``target_dir``; a taken name gets a " (n)" suffix"""
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / src.name
        counter = 1
        while target.exists():
            target = target_dir / f"{src.stem} ({counter}){src.suffix}"
            counter += 1
        shutil.move(str(src), str(target))
        return target
