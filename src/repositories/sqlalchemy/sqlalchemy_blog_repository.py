from typing import List, Optional, Dict, Any
from sqlalchemy import or_
from sqlalchemy.orm import Session
from src.database import models
from src.repositories.interfaces import IBlogRepository

class SqlalchemyBlogRepository(IBlogRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, blog_model: models.Blog) -> models.Blog:
        self.db.add(blog_model)
        self.db.commit()
        self.db.refresh(blog_model)
        return blog_model

    def find_by_id(self, blog_id: int) -> Optional[models.Blog]:
        return self.db.query(models.Blog).filter(models.Blog.id == blog_id).first()

    def list_all(self) -> List[models.Blog]:
        return self.db.query(models.Blog).order_by(models.Blog.id.desc()).all()

    def search(self, query: str) -> List[models.Blog]:
        # %, _ 는 와일드카드가 아니라 글자 그대로 비교
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        return (
            self.db.query(models.Blog)
            .filter(or_(
                models.Blog.title.ilike(pattern, escape="\\"),
                models.Blog.category.ilike(pattern, escape="\\"),
            ))
            .order_by(models.Blog.id.desc())
            .all()
        )

    def update(self, blog: models.Blog, data: Dict[str, Any]) -> models.Blog:
        for key, value in data.items():
            setattr(blog, key, value)
        self.db.commit()
        self.db.refresh(blog)
        return blog

    def rollback(self) -> None:
        self.db.rollback()
