import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from loguru import logger

from kb_files.routes import ModuleContext, init_module


@pytest.fixture
def module(collection, tmp_path):
    return init_module(
        ModuleContext(
            collections={"metadata": collection},
            logger=logger,
            data_dir=tmp_path / "nested" / "kb-files",
        )
    )


def test_init_creates_storage_root(module, tmp_path):
    assert (tmp_path / "nested" / "kb-files").is_dir()


def test_exports(module):
    assert set(module.methods) == {"upload_file", "get_file_buffer"}
    assert module.contexts == {}
    paths = {route.path for route in module.router.routes}
    assert {"/v1/file", "/v1/file/{file_id}", "/v1/file-data/{file_id}"} <= paths


def test_init_requires_metadata_collection(tmp_path):
    with pytest.raises(KeyError):
        init_module(ModuleContext(collections={}, data_dir=tmp_path / "kb-files"))


@pytest.mark.asyncio
async def test_exported_methods_round_trip(module):
    record = await module.methods["upload_file"](b"via host", "host.txt")
    assert await module.methods["get_file_buffer"](record.id) == b"via host"
    assert await module.methods["get_file_buffer"](str(uuid.uuid4())) is None


def test_router_mounts_on_host_app(module):
    app = FastAPI()
    app.include_router(module.router)
    with TestClient(app) as client:
        r = client.post("/v1/file", files={"file": ("a.bin", b"abc", "application/octet-stream")})
        assert r.status_code == 201
        file_id = r.json()["id"]
        assert client.get(f"/v1/file-data/{file_id}").content == b"abc"


def test_internal_errors_are_logged(module, collection, monkeypatch):
    messages = []
    sink_id = logger.add(messages.append, level="ERROR")

    def broken_find(file_id):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(collection, "find_one", broken_find)
    app = FastAPI()
    app.include_router(module.router)
    try:
        with TestClient(app, raise_server_exceptions=False) as client:
            r = client.get(f"/v1/file/{uuid.uuid4()}")
    finally:
        logger.remove(sink_id)

    assert r.status_code == 500
    assert r.text == "Internal server error occured."
    assert any("database unavailable" in str(m) for m in messages)


def test_file_data_looks_up_metadata_once(module, collection, monkeypatch):
    app = FastAPI()
    app.include_router(module.router)
    lookups = []
    find_one = collection.find_one

    def counting_find_one(file_id):
        lookups.append(file_id)
        return find_one(file_id)

    with TestClient(app) as client:
        file_id = client.post("/v1/file", files={"file": ("once.bin", b"\x00once", "application/octet-stream")}).json()["id"]
        monkeypatch.setattr(collection, "find_one", counting_find_one)
        r = client.get(f"/v1/file-data/{file_id}")

    assert r.status_code == 200
    assert r.content == b"\x00once"
    assert lookups == [file_id]
