from fastapi import FastAPI
from loguru import logger
from .settings import Settings, settings
from . import logger as logging_setup
from .crud import make_engine, init_db, MetadataCollection
from .routes import ModuleContext, init_module


def create_app(config: Settings = settings) -> FastAPI:
    engine = make_engine(config.DATABASE_URL)
    module = init_module(
        ModuleContext(
            collections={"metadata": MetadataCollection(engine)},
            logger=logger,
            data_dir=config.DATA_DIR,
            max_upload_bytes=config.MAX_UPLOAD_BYTES,
        )
    )

    app = FastAPI(title="kb-files")

    @app.on_event("startup")
    def startup_event():
        init_db(engine)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(module.router)
    app.state.file_store = module
    return app


def _build_default_app() -> FastAPI:
    # initialize logging (Loguru)
    logging_setup.configure()
    return create_app(settings)


app = _build_default_app()
