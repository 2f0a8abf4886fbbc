"""
User Repository - Tenant staff. Email lookups are global (login identity).
"""

from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, joinedload

from pos_api.models import User
from .base import BaseRepository, RepositoryFilters


@dataclass
class UserFilters(RepositoryFilters):
    role: str | None = None


class UserRepository(BaseRepository[User]):
    @property
    def model(self) -> type[User]:
        return User

    def _base_query(self, tenant_id: int) -> Select:
        return select(User).where(User.tenant_id == tenant_id)

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        role = getattr(filters, "role", None)
        if role:
            query = query.where(User.role == role)
        if filters.search_pattern:
            query = query.where(User.name.ilike(filters.search_pattern, escape="\\"))
        return query

    def _ordering(self) -> list:
        return [User.name, User.id]

    def find_by_email(self, email: str) -> User | None:
        """Any user with this email, active or not, in any tenant."""
        query = (
            select(User)
            .where(func.lower(User.email) == email.strip().lower())
            .options(joinedload(User.tenant))
        )
        return self._db.scalar(query)

    def find_by_id_global(self, user_id: int) -> User | None:
        return self._db.get(User, user_id)


def get_user_repository(db: Session) -> UserRepository:
    return UserRepository(db)
