from __future__ import annotations

from fastapi import Request

from ..services.engine import ConsoleEngine


def get_engine(request: Request) -> ConsoleEngine:
    return request.app.state.engine
