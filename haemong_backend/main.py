# haemong_backend/main.py

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from haemong_backend.api.auth.routes import router as auth_router
from haemong_backend.api.chat.routes import router as chat_router
from haemong_backend.api.community.routes import router as community_router
from haemong_backend.api.errors import register_error_handlers, register_request_logging
from haemong_backend.config import settings, validate_settings
from haemong_backend.dependencies import get_storage_service
from haemong_backend.infrastructure.db.bootstrap import dispose_engine, init_engine
from haemong_backend.logging_config import configure_logging

logger = logging.getLogger(__name__)

cfg = settings()
configure_logging(cfg.environment, cfg.effective_log_level, cfg.log_dir)


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_settings(cfg)
    await init_engine(cfg)
    await get_storage_service().ensure_bucket()
    logger.info(f"haemong backend started: env={cfg.environment} port={cfg.port}")
    yield
    await dispose_engine()
    logger.info("haemong backend stopped")


app = FastAPI(title="Haemong API", lifespan=lifespan)

if cfg.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Environment"],
    )

register_request_logging(app, cfg.environment)
register_error_handlers(app, cfg.environment)

app.include_router(auth_router)
app.include_router(chat_router)
app.include_router(community_router)


@app.get("/health")
async def health():
    return {"status": "ok", "environment": cfg.environment}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("haemong_backend.main:app", host="0.0.0.0", port=cfg.port)
