from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ..services.engine import ConsoleEngine
from ..services.live_status import CATEGORY_PATTERNS
from .deps import get_engine


router = APIRouter()


@router.get("/state")
async def state(engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    return engine.state()


@router.get("/status/{category}")
async def live_status(category: str, engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    if category not in CATEGORY_PATTERNS:
        raise HTTPException(status_code=404, detail=f"Unknown category: {category}")
    return {**engine.live_status(category).model_dump(), "label": engine.status_label(category)}


@router.get("/throughput")
async def throughput(engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    return {
        "latest": engine.history.latest.model_dump(),
        "history": [s.model_dump() for s in engine.history.samples()],
    }


@router.get("/metrics")
async def metrics(engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    return {**engine.metrics.model_dump(), "version": engine.version}
