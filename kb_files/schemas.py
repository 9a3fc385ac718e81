from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime, timezone
from .models import FileMetadata


def isoformat_utc(value: datetime) -> str:
    """Render as ISO-8601 UTC with millisecond precision, e.g. ``2024-05-01T12:00:00.123Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FileMetadataView(BaseModel):
    id: str
    type: Optional[str] = None
    filename: str
    uploaded_at: str = Field(alias="uploadedAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_metadata(cls, metadata: FileMetadata) -> "FileMetadataView":
        return cls(
            id=str(metadata.id),
            type=metadata.type,
            filename=metadata.filename,
            uploaded_at=isoformat_utc(metadata.uploaded_at),
        )
