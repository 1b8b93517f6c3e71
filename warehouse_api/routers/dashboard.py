from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from warehouse_api.core.api_docs import error_responses
from warehouse_api.core.deps import get_db
from warehouse_api.core.security_current import get_current_user
from warehouse_api.models.user import User
from warehouse_api.schemas.dashboard import DashboardStatsOut
from warehouse_api.services.dashboard_service import get_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    response_model=DashboardStatsOut,
    summary="Dashboard statistics",
    description=(
        "Product counts, total stock value, low and out of stock counts, recent "
        "movements, stock per category and warehouse utilization per area."
    ),
    responses=error_responses(401, 500),
)
def dashboard_stats(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return get_stats(db)
