# orderdesk/repositories/user_repo.py
import uuid

from sqlmodel import Session, select

from orderdesk.models.user import User


class UserRepository:
    """
    Data access layer for User.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic

    NOTE: `list` shadows the builtin in this class body; keep it after
    every method annotated with `list[...]`.
    """

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        """Return a User by unique email, or None if not found."""
        stmt = select(User).where(User.email == email)
        return session.exec(stmt).first()

    def list_by_role(self, session: Session, role: str) -> list[User]:
        """Users with the given role, ordered by name."""
        stmt = select(User).where(User.role == role).order_by(User.name)
        return list(session.exec(stmt).all())

    def list(self, session: Session, skip: int = 0, limit: int = 50) -> list[User]:
        """Paginated user listing, newest first."""
        stmt = select(User).order_by(User.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def upsert(self, session: Session, user: User) -> User:
        """Insert or overwrite the profile row with this id."""
        merged = session.merge(user)
        session.commit()
        session.refresh(merged)
        return merged

    def update(self, session: Session, user: User) -> User:
        """Persist changes to an existing User."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def delete(self, session: Session, user: User) -> None:
        """Delete a User."""
        session.delete(user)
        session.commit()
