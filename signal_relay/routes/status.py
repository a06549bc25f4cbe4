from typing import List

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse


def base_prefix(ws_base_path: str) -> str:
    """'/ws/' -> '/ws', '/' -> ''"""
    return "/" + ws_base_path.strip("/") if ws_base_path.strip("/") else ""


def _paths(*candidates: str) -> List[str]:
    seen = []
    for p in candidates:
        if p not in seen:
            seen.append(p)
    return seen


def build_status_router(ws_base_path: str = "/") -> APIRouter:
    """Status and health routes, exposed at the root and under the proxy base path"""
    router = APIRouter()
    base = base_prefix(ws_base_path)

    async def online(request: Request):
        """Online users; read only"""
        users = await request.app.state.relay.state.online_users()
        return {"users": [u.to_wire() for u in users]}

    async def healthz():
        return PlainTextResponse("OK")

    for path in _paths("/online", f"{base}/online"):
        router.add_api_route(path, online, methods=["GET"], tags=["Status"])
    for path in _paths("/", "/healthz", f"{base}/healthz"):
        router.add_api_route(path, healthz, methods=["GET"], tags=["Health"], response_class=PlainTextResponse)

    return router
