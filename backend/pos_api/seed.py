"""
Startup seed: plan limit rows and the bootstrap superadmin.
Idempotent, safe to run on every start.
"""

from sqlalchemy.orm import Session

from pos_api.models import User
from pos_api.repositories import get_user_repository
from pos_api.services.domain.plan_limit_service import seed_plan_limits
from pos_shared.config.constants import Roles
from pos_shared.config.logging import get_logger, mask_email
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import safe_commit
from pos_shared.security.password import hash_password

logger = get_logger(__name__)


def seed_superadmin(db: Session, email: str, password: str) -> User | None:
    """
    Create the superadmin when no user has that email yet.
    Returns the new user, or None when nothing was created.
    """
    email = email.strip().lower()
    if not email or not password:
        return None
    if get_user_repository(db).find_by_email(email) is not None:
        return None

    user = User(
        tenant_id=None,
        name="Superadmin",
        email=email,
        password_hash=hash_password(password),
        role=Roles.SUPERADMIN,
    )
    db.add(user)
    safe_commit(db)
    logger.info("Superadmin created", email=mask_email(email))
    return user


def seed(db: Session) -> None:
    seed_plan_limits(db)
    seed_superadmin(db, settings.superadmin_email, settings.superadmin_password)
