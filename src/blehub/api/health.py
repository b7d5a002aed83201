from fastapi import APIRouter
from ..core.run_manager import manager

router = APIRouter(prefix="", tags=["health"])

@router.get("/health")
async def health():
    return {"status": "ok"}

@router.get("/ready")
async def ready():
    last = manager.latest()
    ok = manager.running and (last is None or last.status != "failed")
    return {"ready": ok, "collecting": manager.running}
