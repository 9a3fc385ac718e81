from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
import uuid
from sqlalchemy import Column, DateTime


class FileMetadata(SQLModel, table=True):
    __tablename__ = "kb_file_metadata"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    # sniffed MIME type; None when no signature was recognised
    type: Optional[str] = None
    # client-supplied name, stored as given
    filename: str
    # server-local location of the bytes, never exposed over HTTP
    path: str = Field(unique=True)
    uploaded_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
