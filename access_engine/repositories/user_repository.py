"""Repository for users mirrored from the auth provider."""

import logging

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from access_engine.models.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User lookups and first-request provisioning"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create_by_auth_id(self, auth_user_id: str) -> User:
        """
        Get the user for a JWT subject, creating the row on first sight.

        Two first requests of the same subject may race; the loser of the
        unique constraint re-reads the winner's row.

        Args:
            auth_user_id: User ID from the JWT 'sub' claim
        """
        user = self.db.query(User).filter(User.auth_user_id == auth_user_id).first()
        if user is not None:
            return user

        try:
            user = User(auth_user_id=auth_user_id)
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info("Concurrent provisioning of auth user %s, re-reading", auth_user_id)
            return self.db.query(User).filter(User.auth_user_id == auth_user_id).one()

        self.db.refresh(user)
        logger.info("Provisioned user %s for auth subject %s", user.id, auth_user_id)
        return user

    def exists(self, user_id: int) -> bool:
        """True if a user with this internal ID exists in any tenant"""
        return bool(self.db.execute(select(exists().where(User.id == user_id))).scalar())
