# orderdesk/models/activity_log.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class ActivityLog(SQLModel, table=True):
    """
    Append-only record of a mutation.

    Rows are never updated or deleted by the application.

    order_id / user_id are plain ids (no FK): the order or the acting user
    may be gone later. order_ref / customer_ref are display strings copied
    at write time so the entry stays readable after deletions.
    """

    __tablename__ = "activity_logs"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    # Acting user
    user_id: uuid.UUID = Field(index=True)

    # CREATED | STATUS_CHANGED | DELETED | ROLE_CHANGED | USER_* ...
    action: str = Field(max_length=50)

    description: str | None = None

    order_id: uuid.UUID | None = Field(default=None, index=True)
    order_ref: str | None = None
    customer_ref: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
