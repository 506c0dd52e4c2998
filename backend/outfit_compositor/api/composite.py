from typing import Dict, Optional
import uuid

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from outfit_compositor.core.config import CompositorConfig
from outfit_compositor.core.errors import (
    AllItemsFailed,
    CompositeOutOfMemory,
    CompositorError,
    NoItemsProvided,
    SaveFailure,
)
from outfit_compositor.core.logger import TaskLogger
from outfit_compositor.services.compositor import OutfitCompositor

router = APIRouter()

_compositor: Optional[OutfitCompositor] = None

# nothing to composite / processing failed / could not save
STATUS_BY_ERROR = {
    NoItemsProvided: 400,
    AllItemsFailed: 422,
    CompositeOutOfMemory: 503,
    SaveFailure: 507,
}


def get_compositor() -> OutfitCompositor:
    global _compositor
    if _compositor is None:
        _compositor = OutfitCompositor(CompositorConfig.from_env())
    return _compositor


def set_compositor(compositor: Optional[OutfitCompositor]) -> None:
    global _compositor
    _compositor = compositor


class CompositeRequest(BaseModel):
    items: Dict[str, Optional[str]] = Field(default_factory=dict)


class EvictRequest(BaseModel):
    max_age_seconds: Optional[float] = Field(default=None, ge=0)


def _error_response(exc: CompositorError) -> JSONResponse:
    status = next((code for cls, code in STATUS_BY_ERROR.items() if isinstance(exc, cls)), 500)
    return JSONResponse(status_code=status, content={"detail": exc.user_message, "error": exc.code})


@router.post("/composite")
async def composite(req: CompositeRequest):
    trace_id = str(uuid.uuid4())
    compositor = get_compositor()
    try:
        # Pixel work is CPU-bound; keep it off the event loop.
        result = await run_in_threadpool(compositor.compose, req.items, trace_id)
    except CompositorError as exc:
        TaskLogger(trace_id=trace_id).error("Composite failed", error=exc.code, reason=str(exc))
        return _error_response(exc)

    return {
        "path": str(result.path),
        "drawn": result.drawn,
        "skipped": result.skipped,
        "failures": [
            {"category": f.category, "path": f.path, "reason": f.reason} for f in result.failures
        ],
        "trace_id": result.trace_id,
    }


@router.post("/composite/evict")
async def evict(req: EvictRequest):
    stats = await run_in_threadpool(get_compositor().evict_cache, req.max_age_seconds)
    return {
        "scanned": stats.scanned,
        "deleted": stats.deleted,
        "freed_bytes": stats.freed_bytes,
        "errors": stats.errors,
    }
