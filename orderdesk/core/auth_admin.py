# orderdesk/core/auth_admin.py
import uuid

from supabase import Client

from orderdesk.core.supabase_client import supabase_admin


class AuthAdmin:
    """
    Thin adapter over the Supabase Auth admin API (service role).

    Only the calls the user directory needs:
      - create a confirmed login
      - update email / display name
      - delete a login

    Errors from Supabase propagate to the caller.
    """

    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = supabase_admin()
        return self._client

    def create_user(self, email: str, password: str, name: str) -> uuid.UUID:
        response = self.client.auth.admin.create_user(
            {
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"name": name},
            }
        )
        if response.user is None:
            raise RuntimeError("Supabase returned no user for create_user")
        return uuid.UUID(str(response.user.id))

    def update_user(self, user_id: uuid.UUID, email: str, name: str) -> None:
        self.client.auth.admin.update_user_by_id(
            str(user_id),
            {"email": email, "user_metadata": {"name": name}},
        )

    def delete_user(self, user_id: uuid.UUID) -> None:
        self.client.auth.admin.delete_user(str(user_id))


def get_auth_admin() -> AuthAdmin:
    """FastAPI dependency (overridden in tests)."""
    return AuthAdmin()
