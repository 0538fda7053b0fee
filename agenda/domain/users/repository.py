"""User repository - Database operations for accounts, permissions and preferences"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import User, UserPermission, UserPreference


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def list_users(db: Session) -> list[User]:
        """Newest first, override permissions loaded"""
        return (
            db.query(User)
            .options(selectinload(User.permissions))
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_username(db: Session, username: str, exclude_id: Optional[int] = None) -> Optional[User]:
        query = db.query(User).filter(User.username == username)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first()

    @staticmethod
    def create(db: Session, **data) -> User:
        user = User(**data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def delete(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()

    # ------------------------------------------------------------------
    # Permission overrides
    # ------------------------------------------------------------------

    @staticmethod
    def get_override_permissions(db: Session, user_id: int) -> list[str]:
        return [
            p
            for (p,) in db.query(UserPermission.permission)
            .filter(UserPermission.user_id == user_id)
            .order_by(UserPermission.id)
            .all()
            if p
        ]

    @staticmethod
    def replace_permissions(db: Session, user_id: int, permissions: list[str]) -> None:
        """Delete the override list and insert the new one in one transaction"""
        try:
            db.query(UserPermission).filter(UserPermission.user_id == user_id).delete(
                synchronize_session=False
            )
            for permission in permissions:
                db.add(UserPermission(user_id=user_id, permission=permission))
            db.commit()
        except Exception:
            db.rollback()
            raise

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    @staticmethod
    def get_preferences(db: Session, user_id: int) -> dict[str, Optional[str]]:
        rows = db.query(UserPreference).filter(UserPreference.user_id == user_id).all()
        return {r.key: r.value for r in rows}

    @staticmethod
    def save_preferences(db: Session, user_id: int, entries: list[tuple[str, Optional[str]]]) -> None:
        for key, value in entries:
            pref = (
                db.query(UserPreference)
                .filter(UserPreference.user_id == user_id, UserPreference.key == key)
                .first()
            )
            if pref is None:
                db.add(UserPreference(user_id=user_id, key=key, value=value))
            else:
                pref.value = value
        db.commit()
