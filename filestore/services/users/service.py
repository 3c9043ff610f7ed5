from datetime import datetime, timezone

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from filestore.models.user import User


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_or_create_user(
        self,
        telegram_id: str,
        telegram_username: str | None = None,
        telegram_first_name: str | None = None,
    ) -> User:
        """Lazily create the user on first interaction; refresh profile and last_active otherwise."""
        user = self.get_by_telegram_id(telegram_id)
        now = datetime.now(timezone.utc)
        if user:
            if telegram_username is not None:
                user.telegram_username = telegram_username
            if telegram_first_name is not None:
                user.telegram_first_name = telegram_first_name
            user.last_active = now
            self.db.add(user)
            self.db.commit()
            return user
        user = User(
            telegram_id=telegram_id,
            telegram_username=telegram_username,
            telegram_first_name=telegram_first_name,
            last_active=now,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Concurrent first interaction created the row first
            self.db.rollback()
            return self.db.query(User).filter(User.telegram_id == telegram_id).one()
        self.db.refresh(user)
        return user

    def get_by_telegram_id(self, telegram_id: str) -> User | None:
        return self.db.query(User).filter(User.telegram_id == telegram_id).one_or_none()

    def mark_verified(self, telegram_id: str) -> bool:
        """
        Atomically flip verified False -> True.
        Returns True only for the call that performed the transition.
        """
        result = self.db.execute(
            update(User)
            .where(User.telegram_id == telegram_id, User.verified.is_(False))
            .values(verified=True, verified_at=datetime.now(timezone.utc))
        )
        self.db.commit()
        return result.rowcount > 0

    def set_banned(self, telegram_id: str, banned: bool, reason: str | None = None) -> User:
        user = self.get_or_create_user(telegram_id)
        user.is_banned = banned
        user.ban_reason = reason if banned else None
        user.banned_at = datetime.now(timezone.utc) if banned else None
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def increment_files_shared(self, telegram_id: str) -> None:
        self.db.execute(
            update(User)
            .where(User.telegram_id == telegram_id)
            .values(files_shared=User.files_shared + 1)
        )
        self.db.commit()

    def increment_files_accessed(self, telegram_id: str) -> None:
        self.db.execute(
            update(User)
            .where(User.telegram_id == telegram_id)
            .values(files_accessed=User.files_accessed + 1)
        )
        self.db.commit()

    def list_recipient_ids(self, include_banned: bool = False) -> list[str]:
        query = self.db.query(User.telegram_id)
        if not include_banned:
            query = query.filter(User.is_banned.is_(False))
        return [row.telegram_id for row in query.all()]

    def counts(self) -> dict[str, int]:
        total = self.db.query(func.count(User.id)).scalar() or 0
        verified = self.db.query(func.count(User.id)).filter(User.verified.is_(True)).scalar() or 0
        banned = self.db.query(func.count(User.id)).filter(User.is_banned.is_(True)).scalar() or 0
        return {"total": total, "verified": verified, "banned": banned}
