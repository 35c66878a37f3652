# orderdesk/repositories/activity_log_repo.py
import uuid

from sqlmodel import Session, select

from orderdesk.models.activity_log import ActivityLog


class ActivityLogRepository:
    """
    Append-only access to activity_logs.

    There is intentionally no update/delete here.
    """

    def append(self, session: Session, entry: ActivityLog) -> ActivityLog:
        session.add(entry)
        session.commit()
        session.refresh(entry)
        return entry

    def list_recent(
        self,
        session: Session,
        limit: int = 500,
        order_id: uuid.UUID | None = None,
    ) -> list[ActivityLog]:
        stmt = select(ActivityLog)
        if order_id is not None:
            stmt = stmt.where(ActivityLog.order_id == order_id)
        stmt = stmt.order_by(ActivityLog.created_at.desc()).limit(limit)
        return list(session.exec(stmt).all())
