from fastapi import APIRouter, HTTPException
from ..core.run_manager import manager
from ..core.schemas import RunSummary, RunHistoryResponse

router = APIRouter(prefix='/runs', tags=['runs'])

@router.get('', response_model=RunHistoryResponse)
async def list_runs(limit: int = 50):
    return RunHistoryResponse(runs=manager.runs(limit=limit))

@router.get('/latest', response_model=RunSummary)
async def latest():
    s = manager.latest()
    if not s:
        raise HTTPException(status_code=404, detail='no runs yet')
    return s
