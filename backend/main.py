"""Document vault FastAPI application."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from models.base import Base, async_engine
from api import admin, auth, documents, shares
from sharing.errors import ShareError

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Document Vault API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(admin.router)
app.include_router(auth.router)
app.include_router(documents.router)
app.include_router(shares.router)


@app.exception_handler(ShareError)
async def share_error_handler(request: Request, exc: ShareError):
    """Report share-link failures with their status; the log keeps the precise reason."""
    # Route template, not the raw path, so share tokens stay out of the log.
    route = getattr(request.scope.get("route"), "path", "?")
    logger.info(
        "%s %s -> %d %s (%s)",
        request.method, route, exc.status_code, type(exc).__name__, exc.reason,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
async def startup():
    """Create database tables and start background workers."""
    logger.info("Creating database tables...")
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready.")

    from workers.link_sweeper import start_sweeper
    start_sweeper()


@app.on_event("shutdown")
async def shutdown():
    from workers.link_sweeper import stop_sweeper
    await stop_sweeper()


@app.get("/api/health")
async def health():
    return {"status": "ok"}
