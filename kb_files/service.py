"""Ingestion and lookup of uploaded files.

Bytes are written below ``data_dir`` in one directory per UTC date, named
after the upload time in hex milliseconds and the record id::

    data/kb-files/2024-05-01/018f3a1b2c3d-6f1c...e2.bin

The metadata record is inserted only after the bytes are on disk, so a
record never points at a file that was not written. The reverse is not
guaranteed: a failed insert leaves the written file behind.
"""
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import aiofiles
import aiofiles.os
import magic
from fastapi.concurrency import run_in_threadpool

from .crud import MetadataCollection
from .models import FileMetadata

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# libmagic answers with these when no signature matched
UNDETECTED_MIME_TYPES = {
    "application/octet-stream",
    "application/x-empty",
    "inode/x-empty",
}

# guessed from text content rather than a magic number
TEXT_GUESS_MIME_TYPES = {
    "application/json",
    "application/csv",
    "application/x-ndjson",
}

SNIFF_BYTES = 4100


def utcnow() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def epoch_millis(value: datetime) -> int:
    return (value - EPOCH) // timedelta(milliseconds=1)


def storage_name(uploaded_at: datetime, file_id: str) -> str:
    return f"{epoch_millis(uploaded_at):012x}-{file_id}.bin"


def sniff_mime_type(data: bytes) -> Optional[str]:
    if not data:
        return None
    mime = magic.from_buffer(data[:SNIFF_BYTES], mime=True)
    if not mime or mime in UNDETECTED_MIME_TYPES or mime in TEXT_GUESS_MIME_TYPES:
        return None
    if mime.startswith("text/"):
        return None
    return mime


class FileStoreService:
    def __init__(
        self,
        collection: MetadataCollection,
        logger,
        data_dir: Path,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.collection = collection
        self.logger = logger
        self.data_dir = Path(data_dir)
        self.clock = clock

    async def _ensure_dir(self, directory: Path):
        if await aiofiles.os.path.isdir(directory):
            return
        try:
            # non-recursive: a missing storage root is an error
            await aiofiles.os.mkdir(directory)
        except FileExistsError:
            # created by a concurrent upload
            pass

    async def upload_file(self, data: bytes, filename: str) -> FileMetadata:
        uploaded_at = self.clock()
        file_id = str(uuid.uuid4())

        directory = self.data_dir / uploaded_at.strftime("%Y-%m-%d")
        path = directory / storage_name(uploaded_at, file_id)
        await self._ensure_dir(directory)

        mime_type = await run_in_threadpool(sniff_mime_type, data)

        async with aiofiles.open(path, "wb") as out_file:
            await out_file.write(data)

        record = FileMetadata(
            id=file_id,
            type=mime_type,
            filename=filename,
            path=str(path),
            uploaded_at=uploaded_at,
        )
        record = await run_in_threadpool(self.collection.insert_one, record)
        self.logger.info(
            "Stored file {} ({} bytes, type={}) at {}", record.id, len(data), record.type, record.path
        )
        return record

    async def get_file_metadata(self, file_id: str) -> Optional[FileMetadata]:
        return await run_in_threadpool(self.collection.find_one, file_id)

    async def get_file_buffer(self, file_id: str) -> Optional[bytes]:
        """Return the stored bytes, or None for an unknown id.

        A record whose file has gone missing raises ``FileNotFoundError``.
        """
        metadata = await self.get_file_metadata(file_id)
        if metadata is None:
            return None
        return await self.read_file(metadata)

    async def read_file(self, metadata: FileMetadata) -> bytes:
        async with aiofiles.open(metadata.path, "rb") as in_file:
            return await in_file.read()
