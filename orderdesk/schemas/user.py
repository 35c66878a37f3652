# orderdesk/schemas/user.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: str
    name: str
    role: str
    created_at: datetime


class CustomerOption(SQLModel):
    """A user with role 'user', selectable as the customer of an order."""

    id: uuid.UUID
    name: str


class UserCreate(SQLModel):
    """
    Admin payload: create a login (Supabase Auth) plus its profile row.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    email: str = ""
    password: str = ""
    role: str = "user"


class UserUpdate(SQLModel):
    """
    Admin payload: update another user's name/email (and optionally role).
    """

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    email: str = ""
    role: str | None = None


class UserRoleUpdate(SQLModel):
    """
    Admin-only role update schema.

    Plain string: an unknown role is reported as invalid input.
    """

    model_config = ConfigDict(extra="forbid")

    role: str = ""
