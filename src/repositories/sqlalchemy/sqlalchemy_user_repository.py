from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from src.database import models
from src.repositories.interfaces import IUserRepository

class SqlalchemyUserRepository(IUserRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, user_model: models.User) -> models.User:
        self.db.add(user_model)
        self.db.commit()
        self.db.refresh(user_model)
        return user_model

    def find_by_id(self, user_id: int) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.id == user_id).first()

    def find_by_username(self, username: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.username == username).first()

    def list_all(self, limit: Optional[int] = None) -> List[models.User]:
        query = self.db.query(models.User).order_by(models.User.username.asc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def update_role(self, user: models.User, role: str) -> models.User:
        user.role = role
        self.db.commit()
        self.db.refresh(user)
        return user

    def add_permission(self, user: models.User, name: str) -> bool:
        existing = self.db.query(models.UserPermission).filter_by(user_id=user.id, name=name).first()
        if existing:
            return False
        self.db.add(models.UserPermission(user_id=user.id, name=name))
        try:
            self.db.commit()
        except IntegrityError:
            # 동시에 같은 권한이 먼저 저장된 경우
            self.db.rollback()
            return False
        self.db.refresh(user)
        return True

    def remove_permission(self, user: models.User, name: str) -> bool:
        existing = self.db.query(models.UserPermission).filter_by(user_id=user.id, name=name).first()
        if not existing:
            return False
        self.db.delete(existing)
        self.db.commit()
        self.db.refresh(user)
        return True

    def rollback(self) -> None:
        self.db.rollback()
