from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ..services.engine import ConsoleEngine
from .deps import get_engine


router = APIRouter()


@router.get("")
async def list_ports(engine: ConsoleEngine = Depends(get_engine)) -> List[Dict[str, Any]]:
    return [p.model_dump() for p in engine.port_views()]


@router.post("/{port_id}/toggle")
async def toggle_port(port_id: int, engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    engine.toggle_port(port_id)
    return {"ok": True, "port": engine.config.port(port_id).model_dump()}
