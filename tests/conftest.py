# tests/conftest.py
from __future__ import annotations
import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator

# Point the default settings at a scratch area before kb_files is imported
_SESSION_DIR = tempfile.mkdtemp(prefix="kb-files-session-")
os.environ.setdefault("DATA_DIR", os.path.join(_SESSION_DIR, "data", "kb-files"))
os.environ.setdefault("LOG_DIR", os.path.join(_SESSION_DIR, "logs"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_SESSION_DIR, 'default.db')}")

import pytest
from fastapi.testclient import TestClient
from loguru import logger

from kb_files.crud import MetadataCollection, init_db, make_engine
from kb_files.main import create_app
from kb_files.service import FileStoreService
from kb_files.settings import Settings

PNG_BYTES = bytes.fromhex("89504e470d0a1a0a0000000d49484452") + b"\x00" * 64


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_SESSION_DIR, ignore_errors=True)


# --------------------------------------------------------------------
# Storage root and metadata collection per test
# --------------------------------------------------------------------
@pytest.fixture
def data_dir(tmp_path) -> Path:
    d = tmp_path / "data" / "kb-files"
    d.mkdir(parents=True)
    return d


@pytest.fixture
def collection(tmp_path) -> Generator[MetadataCollection, None, None]:
    engine = make_engine(f"sqlite:///{tmp_path / 'meta.db'}")
    init_db(engine)
    yield MetadataCollection(engine)
    engine.dispose()


@pytest.fixture
def service(collection, data_dir) -> FileStoreService:
    return FileStoreService(collection, logger, data_dir)


# --------------------------------------------------------------------
# FastAPI test client over a freshly built app
# --------------------------------------------------------------------
@pytest.fixture
def app_settings(tmp_path) -> Settings:
    return Settings(
        DATA_DIR=tmp_path / "app-data" / "kb-files",
        DATABASE_URL=f"sqlite:///{tmp_path / 'app.db'}",
        MAX_UPLOAD_BYTES=1024,
    )


@pytest.fixture
def client(app_settings) -> Generator[TestClient, None, None]:
    app = create_app(app_settings)
    # raise_server_exceptions off so error responses can be asserted on
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES
