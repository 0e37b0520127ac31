from typing import List, Optional
from sqlalchemy.orm import Session
from src.database import models
from src.repositories.interfaces import ICommentRepository

class SqlalchemyCommentRepository(ICommentRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, comment_model: models.Comment) -> models.Comment:
        self.db.add(comment_model)
        self.db.commit()
        self.db.refresh(comment_model)
        return comment_model

    def find_by_id(self, comment_id: int) -> Optional[models.Comment]:
        return self.db.query(models.Comment).filter(models.Comment.id == comment_id).first()

    def list_recent_by_blog_id(self, blog_id: int, limit: int) -> List[models.Comment]:
        return (
            self.db.query(models.Comment)
            .filter(models.Comment.blog_id == blog_id)
            .order_by(models.Comment.created_at.desc(), models.Comment.id.desc())
            .limit(limit)
            .all()
        )

    def delete(self, comment: models.Comment) -> bool:
        if comment:
            self.db.delete(comment)
            self.db.commit()
            return True
        return False

    def rollback(self) -> None:
        self.db.rollback()
