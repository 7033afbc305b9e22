from fastapi import APIRouter

from doorlist.api.deps import DBSession, Lifecycle
from doorlist.api.v1.schemas.admin import SweepOut
from doorlist.services import sweep_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/lifecycle/sweep", response_model=SweepOut)
def run_lifecycle_sweep(db: DBSession, policy: Lifecycle):
    # Transitions are conditional updates, so overlapping with a beat sweep is harmless
    result = sweep_service.run_sweep(db, policy)
    return result.as_dict()
