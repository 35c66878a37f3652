# orderdesk/services/activity_log_service.py
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from orderdesk.core.auth import Identity, IdentityGate
from orderdesk.core.config import get_settings
from orderdesk.core.errors import InvalidArgumentError
from orderdesk.models.activity_log import ActivityLog
from orderdesk.models.order import Order
from orderdesk.repositories.activity_log_repo import ActivityLogRepository
from orderdesk.schemas.activity_log import NO_CUSTOMER, ActivityLogRead
from orderdesk.services.validation import parse_id

settings = get_settings()
logger = logging.getLogger(__name__)

# Action codes
ACTION_CREATED = "CREATED"
ACTION_STATUS_CHANGED = "STATUS_CHANGED"
ACTION_DELETED = "DELETED"
ACTION_USER_CREATED = "USER_CREATED"
ACTION_USER_UPDATED = "USER_UPDATED"
ACTION_ROLE_CHANGED = "ROLE_CHANGED"
ACTION_USER_DELETED = "USER_DELETED"


@dataclass(frozen=True)
class OrderRef:
    """Order id plus the display string kept after the order is gone."""

    id: uuid.UUID
    display_ref: str


@dataclass(frozen=True)
class LogEntry:
    actor_id: uuid.UUID
    action: str
    description: str
    order: OrderRef | None = None
    customer_ref: str | None = None


def snapshot_order(order: Order) -> OrderRef:
    """Copy the order reference out of a live row."""
    return OrderRef(id=order.id, display_ref=str(order.id))


def customer_display(name: str | None) -> str:
    name = (name or "").strip()
    return name or NO_CUSTOMER


class ActivityLogService:
    """
    Writer and reader for the activity log.

    Writes are best-effort: `record` is called after the primary mutation
    has committed, and a failed insert is logged and dropped. There is no
    rollback of the primary change and no retry (at-most-once).
    """

    def __init__(self, repo: ActivityLogRepository, gate: IdentityGate):
        self.repo = repo
        self.gate = gate

    def record(self, session: Session, entry: LogEntry) -> bool:
        """
        Append one entry. Returns False if the write failed.
        """
        row = ActivityLog(
            user_id=entry.actor_id,
            action=entry.action,
            description=entry.description,
            order_id=entry.order.id if entry.order else None,
            order_ref=entry.order.display_ref if entry.order else None,
            customer_ref=entry.customer_ref,
        )
        try:
            self.repo.append(session, row)
        except SQLAlchemyError:
            session.rollback()
            logger.warning(
                "Activity log write failed (action=%s, order=%s)",
                entry.action,
                entry.order.id if entry.order else None,
                exc_info=True,
            )
            return False
        return True

    def list_recent(
        self,
        session: Session,
        identity: Identity | None,
        limit: int | None = None,
        order_id: str | None = None,
    ) -> list[ActivityLogRead]:
        """
        Newest entries first (admin only).

        `limit` is clamped to [1, LOG_LIMIT_MAX].
        """
        self.gate.require_admin(session, identity)

        if limit is None:
            limit = settings.LOG_LIMIT_MAX
        limit = max(1, min(limit, settings.LOG_LIMIT_MAX))

        order_uuid = None
        if order_id is not None:
            order_uuid = parse_id(order_id, InvalidArgumentError, "Invalid order id.")

        rows = self.repo.list_recent(session, limit=limit, order_id=order_uuid)
        return [
            ActivityLogRead(
                id=r.id,
                created_at=r.created_at,
                user_id=r.user_id,
                action=r.action,
                description=r.description,
                order_id=r.order_id,
                order_ref=r.order_ref,
                customer_ref=r.customer_ref,
                customer=customer_display(r.customer_ref),
            )
            for r in rows
        ]
