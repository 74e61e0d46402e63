from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ..services.engine import ConsoleEngine
from .deps import get_engine


router = APIRouter()


@router.get("/{kind}")
async def get_subsystem(kind: str, engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    return engine.subsystem_view(kind)


@router.post("/{kind}/edit")
async def begin_edit(kind: str, engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    return engine.begin_edit(kind).view()


@router.delete("/{kind}/edit")
async def cancel_edit(kind: str, engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    return engine.cancel_edit(kind).view()


@router.patch("/{kind}/draft")
async def update_draft(
    kind: str,
    patch: Dict[str, Any] = Body(...),
    engine: ConsoleEngine = Depends(get_engine),
) -> Dict[str, Any]:
    return engine.update_draft(kind, patch).view()


@router.post("/{kind}/apply")
async def apply(kind: str, engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    payload = engine.apply(kind)
    return {"ok": True, "config": payload.model_dump()}


@router.post("/{kind}/toggle")
async def toggle(kind: str, engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    engine.toggle_enabled(kind)
    return engine.config.get(kind).view()
