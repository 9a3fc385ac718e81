from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.engine import Engine
from .models import FileMetadata
from typing import Optional
from datetime import timezone


def make_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # sessions are opened from threadpool workers
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def init_db(engine: Engine):
    SQLModel.metadata.create_all(engine)


def _with_utc(record: FileMetadata) -> FileMetadata:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if record.uploaded_at is not None and record.uploaded_at.tzinfo is None:
        record.uploaded_at = record.uploaded_at.replace(tzinfo=timezone.utc)
    return record


class MetadataCollection:
    """The collection of file metadata records, backed by one SQL table.

    Records are only ever inserted and read; nothing here updates or deletes.
    All methods are blocking and are meant to be run off the event loop.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def insert_one(self, record: FileMetadata) -> FileMetadata:
        with Session(self.engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
        return _with_utc(record)

    def find_one(self, file_id: str) -> Optional[FileMetadata]:
        with Session(self.engine) as session:
            record = session.get(FileMetadata, file_id)
        if record is None:
            return None
        return _with_utc(record)
