# orderdesk/routers/logs.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from orderdesk.core.auth import Identity, IdentityGate, get_identity
from orderdesk.database import get_session
from orderdesk.repositories.activity_log_repo import ActivityLogRepository
from orderdesk.schemas.activity_log import ActivityLogRead
from orderdesk.services.activity_log_service import ActivityLogService

router = APIRouter(prefix="/logs", tags=["Activity Log"])

service = ActivityLogService(ActivityLogRepository(), IdentityGate())


@router.get("", response_model=list[ActivityLogRead])
def list_logs(
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
    limit: int | None = None,
    order_id: str | None = None,
):
    """
    Recent activity, newest first (admin only).

    Query params (optional):
      - limit: max rows, capped by LOG_LIMIT_MAX
      - order_id: only entries for this order
    """
    return service.list_recent(session, identity, limit=limit, order_id=order_id)
