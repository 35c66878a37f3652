# orderdesk/schemas/common.py
import uuid

from sqlmodel import SQLModel


class ActionResult(SQLModel):
    """
    Uniform result envelope returned by every mutation.

      - success: {"ok": true, "id": "..."}   (id only when something was created)
      - failure: {"ok": false, "error": "...", "code": "..."}

    `allowed` is echoed back only when an enum value was rejected.
    """

    ok: bool
    id: uuid.UUID | None = None
    error: str | None = None
    code: str | None = None
    allowed: list[str] | None = None

    @classmethod
    def success(cls, id: uuid.UUID | None = None) -> "ActionResult":
        return cls(ok=True, id=id)
