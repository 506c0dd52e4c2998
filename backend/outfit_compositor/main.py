from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool

# Load backend/.env as early as possible so the compositor config built on
# first request sees the correct COMPOSITOR_* values.
_backend_dir = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=_backend_dir / ".env", override=False)

from outfit_compositor.api import composite
from outfit_compositor.core.logger import setup_logger

logger = setup_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    compositor = composite.get_compositor()
    logger.info(f"Starting outfit compositor, cache dir: {compositor.cache.directory}")
    # Best-effort housekeeping; evict_cache never raises.
    stats = await run_in_threadpool(compositor.evict_cache)
    logger.info(f"Startup eviction: deleted={stats.deleted}, freed_bytes={stats.freed_bytes}")

    yield

    logger.info("Shutting down...")

app = FastAPI(
    title="Outfit Compositor",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(composite.router, prefix="/api/v1")

@app.get("/health")
async def health_check():
    return {"status": "ok"}

if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "outfit_compositor.main:app",
        host=os.getenv("COMPOSITOR_HOST", "0.0.0.0"),
        port=int(os.getenv("COMPOSITOR_PORT", "8000")),
    )
