from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.metrics import assistant_metrics, request_metrics
from app.deps import require_platform_admin
from app.models.profile import Profile

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"])


@router.get("")
def metrics(_admin: Profile = Depends(require_platform_admin)):
    return {"requests": request_metrics.snapshot(), "assistant": assistant_metrics.snapshot()}
