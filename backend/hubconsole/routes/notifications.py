from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from ..services.engine import ConsoleEngine
from .deps import get_engine


router = APIRouter()


@router.get("")
async def list_notifications(engine: ConsoleEngine = Depends(get_engine)) -> List[Dict[str, Any]]:
    return [n.model_dump(mode="json") for n in engine.active_notifications()]


@router.delete("/{nid}")
async def dismiss(nid: int, engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    if not engine.dismiss_notification(nid):
        raise HTTPException(status_code=404, detail="Notification already gone")
    return {"ok": True}
