"""HTTP surface of the file store and its contract toward the host application.

The host calls ``init_module`` with the collections and logger it owns and
mounts the returned router. Errors raised by any route of that router are
answered by the router itself, see ``error_route_class``.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse
from fastapi.routing import APIRoute
from loguru import logger as default_logger
from starlette.datastructures import UploadFile

from .crud import MetadataCollection
from .errors import (
    LIMIT_FILE_SIZE,
    MISSING_FILE_MESSAGE,
    ErrorKind,
    FileStoreError,
    client_error,
    not_found,
    to_file_store_error,
    upload_parser_error,
)
from .schemas import FileMetadataView
from .service import FileStoreService


@dataclass
class ModuleContext:
    collections: Mapping[str, MetadataCollection]
    logger: Any = default_logger
    data_dir: Path = Path("data/kb-files")
    max_upload_bytes: Optional[int] = None


@dataclass
class ModuleExports:
    router: APIRouter
    methods: Dict[str, Callable]
    contexts: Dict[str, Any] = field(default_factory=dict)


def error_response(request: Request, error: FileStoreError, exc: BaseException, logger) -> Response:
    match error.kind:
        case ErrorKind.CLIENT_INPUT | ErrorKind.NOT_FOUND | ErrorKind.UPLOAD_PARSER:
            return PlainTextResponse(error.message, status_code=error.status_code)
        case ErrorKind.INTERNAL:
            logger.opt(exception=exc).error(
                "Request {} {} failed: {}", request.method, request.url.path, exc
            )
            return PlainTextResponse(error.message, status_code=error.status_code)


def error_route_class(logger) -> type:
    class FileStoreRoute(APIRoute):
        def get_route_handler(self):
            route_handler = super().get_route_handler()

            async def handler(request: Request) -> Response:
                try:
                    return await route_handler(request)
                except Exception as exc:
                    return error_response(request, to_file_store_error(exc), exc, logger)

            return handler

    return FileStoreRoute


def build_router(service: FileStoreService, logger, max_upload_bytes: Optional[int] = None) -> APIRouter:
    router = APIRouter(tags=["files"], route_class=error_route_class(logger))

    @router.post(
        "/v1/file",
        status_code=201,
        response_model=FileMetadataView,
        response_model_exclude_none=True,
    )
    async def post_file(request: Request):
        async with request.form(max_files=1) as form:
            upload = form.get("file")
            if not isinstance(upload, UploadFile):
                raise client_error(MISSING_FILE_MESSAGE)
            if max_upload_bytes is not None and (upload.size or 0) > max_upload_bytes:
                raise upload_parser_error(LIMIT_FILE_SIZE)
            data = await upload.read()
            filename = upload.filename or ""
        metadata = await service.upload_file(data, filename)
        return FileMetadataView.from_metadata(metadata)

    @router.get(
        "/v1/file/{file_id}",
        response_model=FileMetadataView,
        response_model_exclude_none=True,
    )
    async def get_file(file_id: str):
        metadata = await service.get_file_metadata(file_id)
        if metadata is None:
            raise not_found()
        return FileMetadataView.from_metadata(metadata)

    @router.get("/v1/file-data/{file_id}")
    async def get_file_data(file_id: str):
        metadata = await service.get_file_metadata(file_id)
        if metadata is None:
            raise not_found()
        data = await service.read_file(metadata)
        return Response(content=data, media_type=metadata.type or "application/octet-stream")

    return router


def init_module(ctx: ModuleContext) -> ModuleExports:
    data_dir = Path(ctx.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    service = FileStoreService(ctx.collections["metadata"], ctx.logger, data_dir)
    router = build_router(service, ctx.logger, ctx.max_upload_bytes)
    ctx.logger.info("File store ready, storing under {}", data_dir)
    return ModuleExports(
        router=router,
        methods={"upload_file": service.upload_file, "get_file_buffer": service.get_file_buffer},
        contexts={},
    )
