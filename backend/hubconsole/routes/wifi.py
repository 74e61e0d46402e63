from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..services.engine import ConsoleEngine, signal_strength
from .deps import get_engine


router = APIRouter()


class SelectNetworkRequest(BaseModel):
    ssid: str


@router.get("/networks")
async def networks(engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    return {
        "scanning": engine.wifi_scanning,
        "networks": [
            {**n.model_dump(), "bars": signal_strength(n.signal)} for n in engine.wifi_networks
        ],
    }


@router.post("/scan")
async def rescan(engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    engine.scan_wifi()
    return {"ok": True}


@router.post("/select")
async def select_network(req: SelectNetworkRequest, engine: ConsoleEngine = Depends(get_engine)) -> Dict[str, Any]:
    try:
        sub = engine.select_wifi_network(req.ssid)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Network not in scan results: {req.ssid}")
    return sub.view()
