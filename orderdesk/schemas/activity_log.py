# orderdesk/schemas/activity_log.py
import uuid
from datetime import datetime

from sqlmodel import SQLModel

NO_CUSTOMER = "(no customer)"


class ActivityLogRead(SQLModel):
    """
    Log row as shown in the activity table.

    `customer` is customer_ref with a display fallback.
    """

    id: uuid.UUID
    created_at: datetime
    user_id: uuid.UUID
    action: str
    description: str | None
    order_id: uuid.UUID | None
    order_ref: str | None
    customer_ref: str | None
    customer: str
